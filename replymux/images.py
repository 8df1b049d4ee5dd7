"""
Resolution of chat-platform image attachments into inline base64 data.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import ImageMetadataMissingError, ImageTooLargeError, UpstreamError
from .types import EncodedImage, ImageAttachment
from .utils import encode_bytes

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
DEFAULT_MEDIA_TYPE = "image/jpeg"

TELEGRAM_API_URL = "https://api.telegram.org/bot"
TELEGRAM_FILE_URL = "https://api.telegram.org/file/bot"


def _check_size(size: Optional[int], source: str) -> None:
    if size and size > MAX_IMAGE_BYTES:
        logger.warning("Rejecting image: %s size %d exceeds %d bytes", source, size, MAX_IMAGE_BYTES)
        raise ImageTooLargeError(size, MAX_IMAGE_BYTES)


async def get_file_info(http_client: httpx.AsyncClient, token: str, file_id: str) -> Dict[str, Any]:
    """
    Look up where a file can be downloaded from.

    Args:
        http_client: Client used for the request.
        token: Bot access token.
        file_id: Platform file identifier.

    Returns:
        Dict with optional ``file_path`` and ``file_size`` keys.

    Raises:
        UpstreamError: On a non-success HTTP status.
    """
    response = await http_client.post(f"{TELEGRAM_API_URL}{token}/getFile", json={"file_id": file_id})
    if not response.is_success:
        raise UpstreamError("Telegram", response.status_code, response.text)
    return response.json().get("result") or {}


async def download_file(http_client: httpx.AsyncClient, token: str, file_path: str) -> httpx.Response:
    """
    Download a file previously located with :func:`get_file_info`.

    Raises:
        UpstreamError: On a non-success HTTP status.
    """
    response = await http_client.get(f"{TELEGRAM_FILE_URL}{token}/{file_path}")
    if not response.is_success:
        raise UpstreamError("Telegram file download", response.status_code, response.text)
    return response


async def resolve_image(
    token: str,
    attachment: ImageAttachment,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> EncodedImage:
    """
    Fetch an attachment and encode it for inline submission.

    The 5 MiB ceiling is checked against the declared size before any request,
    against the server-reported size before downloading, and against the
    downloaded byte count, since declared sizes are not trusted.

    Args:
        token: Bot access token.
        attachment: ``{"file_id", "mime_type"?, "file_size"?}``.
        http_client: Optional client to reuse. A short-lived one is created
            otherwise.

    Returns:
        EncodedImage: ``{"media_type", "data"}``. The media type is the declared
        MIME type, else the download's content type, else ``image/jpeg``.

    Raises:
        ImageTooLargeError: Any of the three size checks failed.
        ImageMetadataMissingError: The lookup returned no file path.
        UpstreamError: The lookup or download returned a non-success status.
        httpx.TransportError: Network failures are not wrapped.
    """
    _check_size(attachment.get("file_size"), "declared")

    if http_client is None:
        async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
            return await _fetch(client, token, attachment)
    return await _fetch(http_client, token, attachment)


async def _fetch(http_client: httpx.AsyncClient, token: str, attachment: ImageAttachment) -> EncodedImage:
    file_id = attachment.get("file_id")
    info = await get_file_info(http_client, token, file_id)

    file_path = info.get("file_path")
    if not file_path:
        raise ImageMetadataMissingError(file_id)

    _check_size(info.get("file_size"), "reported")

    response = await download_file(http_client, token, file_path)
    content = response.content
    _check_size(len(content), "downloaded")

    content_type = response.headers.get("content-type")
    if content_type:
        content_type = content_type.split(";")[0].strip() or None

    media_type = attachment.get("mime_type") or content_type or DEFAULT_MEDIA_TYPE
    return {"media_type": media_type, "data": encode_bytes(content)}
