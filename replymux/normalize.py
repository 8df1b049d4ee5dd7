"""
Conversion between the uniform conversation shape and each upstream API shape.

Every function here is pure: inputs are never mutated and the results share
no mutable containers with them.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .types import ConversationMessage, GenerationResult, MessageContent

IMAGE_PLACEHOLDER = "[image]"


# =============================================================================
# Request Conversion
# =============================================================================

def to_messages_api(messages: Sequence[ConversationMessage]) -> List[Dict[str, Any]]:
    """
    Convert messages to the Anthropic Messages API shape.

    The system prompt is not part of this list; that API takes it as a
    separate top-level ``system`` parameter.

    Args:
        messages: Conversation, oldest first.

    Returns:
        List of ``{"role", "content"}`` dicts. List content becomes ``text`` and
        ``image`` blocks with a base64 ``source``.
    """
    converted = []
    for msg in messages:
        content = msg["content"]
        if isinstance(content, str):
            converted.append({"role": msg["role"], "content": content})
            continue

        blocks = []
        for part in content:
            if part["type"] == "image":
                blocks.append({
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": part["media_type"],
                        "data": part["data"],
                    },
                })
            else:
                blocks.append({"type": "text", "text": part["text"]})
        converted.append({"role": msg["role"], "content": blocks})
    return converted


def to_chat_completions(
    system_prompt: str,
    messages: Sequence[ConversationMessage],
) -> List[Dict[str, Any]]:
    """
    Convert messages to the OpenAI-compatible chat-completions shape.

    The system prompt is sent as the first message. Images are inlined as
    ``data:`` URLs, which is what OpenAI-compatible endpoints expect.

    Args:
        system_prompt: Instructions for the model.
        messages: Conversation, oldest first.

    Returns:
        The ``messages`` array for the request body.
    """
    converted: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for msg in messages:
        content = msg["content"]
        if isinstance(content, str):
            converted.append({"role": msg["role"], "content": content})
            continue

        parts = []
        for part in content:
            if part["type"] == "image":
                parts.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{part['media_type']};base64,{part['data']}"},
                })
            else:
                parts.append({"type": "text", "text": part["text"]})
        converted.append({"role": msg["role"], "content": parts})
    return converted


def from_chat_completions(request_messages: Sequence[Dict[str, Any]]) -> List[ConversationMessage]:
    """
    Recover user/assistant turns from a chat-completions ``messages`` array.

    System and tool turns are dropped. Text content is returned unchanged.
    """
    recovered: List[ConversationMessage] = []
    for msg in request_messages:
        if msg.get("role") not in ("user", "assistant"):
            continue
        content = msg.get("content")
        if isinstance(content, list):
            content = [
                {"type": "text", "text": part.get("text", "")}
                for part in content
                if part.get("type") == "text"
            ]
        recovered.append({"role": msg["role"], "content": content if content is not None else ""})
    return recovered


def flatten_content(content: MessageContent) -> str:
    """
    Flatten multimodal content to one string for APIs without inline images.

    Text parts are joined with a single space; each image part becomes the
    ``[image]`` placeholder.
    """
    if isinstance(content, str):
        return content
    pieces = []
    for part in content:
        if part["type"] == "image":
            pieces.append(IMAGE_PLACEHOLDER)
        else:
            pieces.append(part["text"])
    return " ".join(pieces)


def to_responses_input(
    system_prompt: str,
    messages: Sequence[ConversationMessage],
) -> List[Dict[str, str]]:
    """
    Convert messages to the Responses API ``input`` list (string content only).
    """
    converted = [{"role": "system", "content": system_prompt}]
    for msg in messages:
        converted.append({"role": msg["role"], "content": flatten_content(msg["content"])})
    return converted


# =============================================================================
# Response Extraction
# =============================================================================

def _with_usage(
    result: GenerationResult,
    input_tokens: Optional[int],
    output_tokens: Optional[int],
) -> GenerationResult:
    if input_tokens is not None:
        result["input_tokens"] = input_tokens
    if output_tokens is not None:
        result["output_tokens"] = output_tokens
    return result


def extract_messages_api(data: Dict[str, Any]) -> GenerationResult:
    """
    Read text and usage from a Messages API response body.

    The text is taken from the first content block that carries text.
    """
    text = ""
    for block in data.get("content") or []:
        if isinstance(block, dict) and block.get("text") is not None:
            text = block["text"]
            break

    usage = data.get("usage") or {}
    return _with_usage({"text": text}, usage.get("input_tokens"), usage.get("output_tokens"))


def first_choice(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``choices[0]`` of a chat-completions body, or an empty dict."""
    choices = data.get("choices") or []
    return choices[0] if choices else {}


def chat_completion_usage(data: Dict[str, Any]) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(prompt_tokens, completion_tokens)``; either may be None."""
    usage = data.get("usage") or {}
    return usage.get("prompt_tokens"), usage.get("completion_tokens")


def extract_chat_completion(data: Dict[str, Any]) -> GenerationResult:
    """
    Read text and usage from a chat-completions response body.

    A null ``content`` becomes the empty string.
    """
    message = first_choice(data).get("message") or {}
    input_tokens, output_tokens = chat_completion_usage(data)
    return _with_usage({"text": message.get("content") or ""}, input_tokens, output_tokens)


def extract_responses(data: Dict[str, Any]) -> GenerationResult:
    """
    Read text, usage and search activity from a Responses API body.

    The text comes from the first ``message`` output item. Every
    ``web_search_call`` item counts as one search; when any ran, the result
    carries a single summary entry in ``web_search_queries``.
    """
    text = None
    search_calls = 0
    for item in data.get("output") or []:
        item_type = item.get("type")
        if item_type == "web_search_call":
            search_calls += 1
        elif item_type == "message" and text is None:
            for block in item.get("content") or []:
                if block.get("text") is not None:
                    text = block["text"]
                    break

    usage = data.get("usage") or {}
    input_tokens = usage.get("input_tokens", usage.get("prompt_tokens"))
    output_tokens = usage.get("output_tokens", usage.get("completion_tokens"))

    result = _with_usage({"text": text or ""}, input_tokens, output_tokens)
    if search_calls:
        result["web_search_queries"] = [f"web_search ({search_calls} call(s))"]
    return result
