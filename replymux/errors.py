"""
Exception types raised by the gateway and its collaborators.
"""
from typing import Optional


class ReplymuxError(Exception):
    """Base exception for all replymux errors"""
    pass


class ConfigError(ReplymuxError):
    """Raised when required configuration is missing or malformed"""
    pass


class UnknownProviderError(ReplymuxError):
    """Raised when a provider name is not one of the recognized set"""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown AI provider: {provider}")


class UpstreamError(ReplymuxError):
    """
    Raised when an upstream HTTP call returns a non-success status.

    The body is kept as the raw response text; it is never parsed.

    Transport failures (connection, DNS, timeout) are not wrapped in this
    type. From the image resolver they surface as ``httpx.TransportError``.
    From the AI adapters the SDK owns the request, so they surface as
    ``openai.APIConnectionError`` / ``anthropic.APIConnectionError`` (or
    the ``APITimeoutError`` subclass) with the httpx error as ``__cause__``.
    """

    def __init__(self, provider: str, status: int, body: str):
        self.provider = provider
        self.status = status
        self.body = body
        super().__init__(f"{provider} API error: {status} - {body}")


class ToolLoopExceededError(ReplymuxError):
    """Raised when the tool-calling loop runs out of rounds without finishing"""

    def __init__(self, max_rounds: int):
        self.max_rounds = max_rounds
        super().__init__(f"Tool-calling loop exceeded {max_rounds} rounds without a final answer")


class ImageError(ReplymuxError):
    """Base class for attachment failures the caller can explain to the user"""
    pass


class ImageTooLargeError(ImageError):
    """Raised when an image is over the inline size ceiling"""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Image is {size} bytes, limit is {limit} bytes")


class ImageMetadataMissingError(ImageError):
    """Raised when the file lookup succeeds but returns no downloadable path"""

    def __init__(self, file_id: Optional[str] = None):
        self.file_id = file_id
        super().__init__(f"No file path returned for file {file_id!r}")


_IMAGE_REJECTION_HINTS = (
    "unsupported",
    "not supported",
    "not allowed",
    "vision",
    "image_url",
    "multimodal",
    "content type",
)


def is_image_unsupported_error(error: BaseException) -> bool:
    """
    Guess whether an upstream failure means the model rejected image input.

    Providers word this differently, so this is a substring heuristic over
    the error message.
    """
    lowered = str(error).lower()
    return "image" in lowered and any(hint in lowered for hint in _IMAGE_REJECTION_HINTS)
