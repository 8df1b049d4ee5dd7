from .base import BaseLLMProvider
from .openai import OpenAIProvider, WebSearchChatProvider
from .anthropic import AnthropicProvider
from .responses import ResponsesSearchProvider

__all__ = [
    "BaseLLMProvider",
    "OpenAIProvider",
    "WebSearchChatProvider",
    "AnthropicProvider",
    "ResponsesSearchProvider",
]
