from typing import Literal, List, Union, TypedDict

# =============================================================================
# Type Definitions
# =============================================================================

# Supported upstream providers
Provider = Literal["claude", "moonshot", "openai", "grok"]

# Reasoning-effort mode forwarded to providers that accept it
ThinkingMode = Literal["disabled", "enabled", "auto"]


class TextPart(TypedDict):
    """
    Text content part for multimodal messages.
    """
    type: Literal["text"]
    text: str


class ImagePart(TypedDict):
    """
    Inline image content part, already base64-encoded.
    """
    type: Literal["image"]
    media_type: str
    data: str


# Content can be a simple string or an ordered list of parts (text + images)
ContentPart = Union[TextPart, ImagePart]
MessageContent = Union[str, List[ContentPart]]


class ConversationMessage(TypedDict):
    """
    One conversation turn, oldest first. Role alternation is not enforced.
    """
    role: Literal["user", "assistant"]
    content: MessageContent


# =============================================================================
# Request / Result Definitions
# =============================================================================

class GenerationOptions(TypedDict, total=False):
    """
    Per-call generation switches.
    """
    web_search: bool
    thinking: ThinkingMode


class GenerationResult(TypedDict, total=False):
    """
    Uniform output of every adapter.

    ``text`` is always present. Token counts are present only when the
    upstream reported usage; ``web_search_queries`` only when at least one
    search actually ran. Its entries are either raw tool-call argument strings
    or a ``"web_search (N call(s))"`` summary depending on the adapter, so it
    is log data, not structured output.
    """
    text: str
    input_tokens: int
    output_tokens: int
    web_search_queries: List[str]


# =============================================================================
# Image Attachment Definitions
# =============================================================================

class ImageAttachment(TypedDict, total=False):
    """
    Remote attachment descriptor as received from the chat platform.

    ``file_size`` is the size declared by the sender and is not trusted.
    """
    file_id: str
    mime_type: str
    file_size: int


class EncodedImage(TypedDict):
    """
    A downloaded image ready for inline submission.
    """
    media_type: str
    data: str
