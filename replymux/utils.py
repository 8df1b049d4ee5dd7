
import base64
from pathlib import Path
from typing import Union, List, Literal, Tuple, Sequence

from .types import ConversationMessage, ContentPart, TextPart, ImagePart

# =============================================================================
# Image Helpers
# =============================================================================

def encode_bytes(data: bytes) -> str:
    """
    Base64-encode raw bytes for inline submission.

    Args:
        data (bytes): The raw file content.

    Returns:
        str: The base64 text (ASCII).
    """
    return base64.b64encode(data).decode("utf-8")


def encode_image_file(image_path: Union[str, Path]) -> Tuple[str, str]:
    """
    Encode a local image file to base64 for LLM usage.

    Reads the file from the given path, determines its MIME type based on extension,
    and returns a tuple of the base64-encoded data and the MIME type.

    Args:
        image_path (Union[str, Path]): Path to the image file.

    Returns:
        Tuple[str, str]: A tuple containing:
            - b64_data (str): The base64-encoded string of the image content.
            - mime_type (str): The MIME type (e.g., 'image/png').

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    # Map file extensions to MIME types
    mime_types = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".gif": "image/gif",
        ".webp": "image/webp",
        ".bmp": "image/bmp",
    }
    mime_type = mime_types.get(path.suffix.lower(), "image/jpeg")

    with open(path, "rb") as f:
        b64_data = encode_bytes(f.read())

    return b64_data, mime_type


def create_image_content(data: str, media_type: str) -> ImagePart:
    """
    Create an inline image content part.

    Args:
        data (str): Base64-encoded image bytes.
        media_type (str): MIME type such as 'image/png'.

    Returns:
        ImagePart: {"type": "image", "media_type": ..., "data": ...}.
    """
    return {"type": "image", "media_type": media_type, "data": data}


def create_text_content(text: str) -> TextPart:
    """
    Create a standardized simple text content part.

    Args:
        text (str): The text message content.

    Returns:
        TextPart: A dictionary {"type": "text", "text": text}.
    """
    return {"type": "text", "text": text}


def create_message(
    role: Literal["user", "assistant"],
    content: Union[str, List[Union[str, ContentPart]]],
) -> ConversationMessage:
    """
    Create a standardized conversation message.

    Handles both simple string content and lists of content parts (multimodal).
    String elements within a list become text parts.

    Args:
        role (str): 'user' or 'assistant'.
        content (Union[str, List]): The content of the message.

    Returns:
        ConversationMessage: A dictionary matching the ConversationMessage type.
    """
    if isinstance(content, str):
        return {"role": role, "content": content}

    normalized: List[ContentPart] = []
    for item in content:
        if isinstance(item, str):
            normalized.append(create_text_content(item))
        else:
            normalized.append(item)

    return {"role": role, "content": normalized}


def has_image_content(messages: Sequence[ConversationMessage]) -> bool:
    """
    Check whether any message in the conversation carries an image part.

    Args:
        messages: The conversation, oldest first.

    Returns:
        bool: True if at least one image part is present.
    """
    for msg in messages:
        content = msg.get("content")
        if isinstance(content, list) and any(part.get("type") == "image" for part in content):
            return True
    return False
