from .client import ReplyGateway, ProviderKind, ProviderSpec, PROVIDERS, generate
from .types import (
    ConversationMessage, ContentPart, TextPart, ImagePart, Provider, ThinkingMode,
    GenerationOptions, GenerationResult, ImageAttachment, EncodedImage,
)
from .errors import (
    ReplymuxError, ConfigError, UnknownProviderError, UpstreamError, ToolLoopExceededError,
    ImageError, ImageTooLargeError, ImageMetadataMissingError,
)
from .images import resolve_image
from .postprocess import strip_citations, truncate_response
from .reply import ReplyComposer, ReplyOutcome
from .rich_printer import RichPrinter

__all__ = [
    "ReplyGateway",
    "ProviderKind",
    "ProviderSpec",
    "PROVIDERS",
    "generate",
    "resolve_image",
    "strip_citations",
    "truncate_response",
    "ReplyComposer",
    "ReplyOutcome",
    "RichPrinter",
    "ConversationMessage",
    "ContentPart",
    "TextPart",
    "ImagePart",
    "Provider",
    "ThinkingMode",
    "GenerationOptions",
    "GenerationResult",
    "ImageAttachment",
    "EncodedImage",
    "ReplymuxError",
    "ConfigError",
    "UnknownProviderError",
    "UpstreamError",
    "ToolLoopExceededError",
    "ImageError",
    "ImageTooLargeError",
    "ImageMetadataMissingError",
]
