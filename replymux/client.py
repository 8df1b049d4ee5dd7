import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from .errors import UnknownProviderError
from .images import resolve_image
from .postprocess import clean_response
from .providers.base import BaseLLMProvider
from .providers.anthropic import AnthropicProvider
from .providers.openai import OpenAIProvider, WebSearchChatProvider
from .providers.responses import ResponsesSearchProvider
from .types import (
    ConversationMessage, EncodedImage, GenerationOptions, GenerationResult, ImageAttachment,
)
from .utils import has_image_content

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """The upstream API shape a provider speaks."""
    MESSAGES = "messages"
    CHAT_BUILTIN_TOOL = "chat_builtin_tool"
    RESPONSES = "responses"


@dataclass(frozen=True)
class ProviderSpec:
    """
    Static description of one upstream provider.

    Attributes:
        name: Provider identifier callers pass to ``generate``.
        kind: API shape.
        base_url: Chat API base. For the responses kind the same base also
            serves ``/chat/completions``, used when search is off.
        supports_thinking: Whether to forward the ``thinking`` field.
    """
    name: str
    kind: ProviderKind
    base_url: str
    supports_thinking: bool = False


PROVIDERS: Dict[str, ProviderSpec] = {
    "claude": ProviderSpec("claude", ProviderKind.MESSAGES, "https://api.anthropic.com"),
    "moonshot": ProviderSpec(
        "moonshot",
        ProviderKind.CHAT_BUILTIN_TOOL,
        "https://api.moonshot.ai/v1",
        supports_thinking=True,
    ),
    "openai": ProviderSpec("openai", ProviderKind.RESPONSES, "https://api.openai.com/v1"),
    "grok": ProviderSpec("grok", ProviderKind.RESPONSES, "https://api.x.ai/v1"),
}

# Generation can take a while; connecting should not
DEFAULT_TIMEOUT = httpx.Timeout(120.0, connect=10.0)

AdapterFactory = Callable[[ProviderSpec, str, Optional[httpx.AsyncClient]], BaseLLMProvider]


# =============================================================================
# Adapter Factories
# =============================================================================

def _messages_adapter(spec: ProviderSpec, api_key: str, http_client: Optional[httpx.AsyncClient]) -> BaseLLMProvider:
    return AnthropicProvider(api_key, spec.base_url, spec.name, http_client)


def _chat_adapter(spec: ProviderSpec, api_key: str, http_client: Optional[httpx.AsyncClient]) -> BaseLLMProvider:
    return OpenAIProvider(
        api_key,
        base_url=spec.base_url,
        provider_name=spec.name,
        http_client=http_client,
        supports_thinking=spec.supports_thinking,
    )


def _tool_loop_adapter(spec: ProviderSpec, api_key: str, http_client: Optional[httpx.AsyncClient]) -> BaseLLMProvider:
    return WebSearchChatProvider(
        api_key,
        base_url=spec.base_url,
        provider_name=spec.name,
        http_client=http_client,
        supports_thinking=spec.supports_thinking,
    )


def _responses_adapter(spec: ProviderSpec, api_key: str, http_client: Optional[httpx.AsyncClient]) -> BaseLLMProvider:
    return ResponsesSearchProvider(api_key, spec.base_url, spec.name, http_client)


def build_routes() -> Dict[Tuple[ProviderKind, bool], AdapterFactory]:
    """
    Map ``(provider kind, search allowed)`` to an adapter factory.

    The message-API provider has no search capability, so both of its
    entries point at the same adapter.
    """
    return {
        (ProviderKind.MESSAGES, False): _messages_adapter,
        (ProviderKind.MESSAGES, True): _messages_adapter,
        (ProviderKind.CHAT_BUILTIN_TOOL, False): _chat_adapter,
        (ProviderKind.CHAT_BUILTIN_TOOL, True): _tool_loop_adapter,
        (ProviderKind.RESPONSES, False): _chat_adapter,
        (ProviderKind.RESPONSES, True): _responses_adapter,
    }


def allow_search(messages: Sequence[ConversationMessage], options: Optional[GenerationOptions]) -> bool:
    """
    Web search runs only when requested and no message carries an image.
    """
    return bool((options or {}).get("web_search")) and not has_image_content(messages)


class ReplyGateway:
    """
    Single entry point for generating a reply from any supported provider.

    The gateway holds no per-call state. Adapters are created per call since
    credentials are per call; they all share one HTTP connection pool, and
    the routing table is built once here.

    Use as an async context manager, or call :meth:`aclose`, to release the
    pool when the gateway created it.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        providers: Optional[Mapping[str, ProviderSpec]] = None,
    ):
        """
        Args:
            http_client: Optional transport shared by every SDK client and the
                image resolver. It stays open after :meth:`aclose`; the
                caller that made it closes it. One is created and owned by
                the gateway when omitted.
            providers: Override of the provider table, mainly for tests.
        """
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True)
        self.providers: Dict[str, ProviderSpec] = dict(providers or PROVIDERS)
        self.routes = build_routes()

    async def aclose(self) -> None:
        """Close the connection pool if this gateway created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "ReplyGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def get_provider(self, provider: str) -> ProviderSpec:
        """
        Look up a provider by name.

        Raises:
            UnknownProviderError: If the name is not recognized.
        """
        spec = self.providers.get(provider)
        if spec is None:
            raise UnknownProviderError(provider)
        return spec

    def select_adapter(
        self,
        provider: str,
        api_key: str,
        messages: Sequence[ConversationMessage],
        options: Optional[GenerationOptions] = None,
    ) -> BaseLLMProvider:
        """
        Pick and build the adapter for one call.

        Selection depends only on the provider kind and whether search is
        allowed; image-bearing conversations never take a search route.
        """
        spec = self.get_provider(provider)
        search = allow_search(messages, options)
        adapter = self.routes[(spec.kind, search)](spec, api_key, self.http_client)
        logger.info("Routing %s (search=%s) to %s", provider, search, type(adapter).__name__)
        return adapter

    async def generate(
        self,
        provider: str,
        api_key: str,
        model: str,
        system_prompt: str,
        messages: List[ConversationMessage],
        options: Optional[GenerationOptions] = None,
        *,
        postprocess: bool = True,
    ) -> GenerationResult:
        """
        Generate one reply.

        Args:
            provider (str): One of 'claude', 'moonshot', 'openai', 'grok'.
            api_key (str): Credential for that provider.
            model (str): Model identifier.
            system_prompt (str): Instructions for the model.
            messages (List[ConversationMessage]): Conversation, oldest first.
                Never mutated.
            options (GenerationOptions, optional): ``web_search`` and
                ``thinking``.
            postprocess (bool): Strip citations and truncate the text. Bare
                numeric footnotes are only stripped when a search ran. Pass
                False when the text will be parsed (e.g. JSON).

        Returns:
            GenerationResult: ``text`` is always a string.

        Raises:
            UnknownProviderError: Unrecognized provider; no request is made.
            UpstreamError: An upstream call returned a non-success status.
            ToolLoopExceededError: The tool loop hit its round cap.
        """
        options = options or {}
        adapter = self.select_adapter(provider, api_key, messages, options)
        result = await adapter.chat(model, system_prompt, messages, options)
        if postprocess:
            result["text"] = clean_response(result["text"], footnotes=bool(result.get("web_search_queries")))
        return result

    async def resolve_image(self, token: str, attachment: ImageAttachment) -> EncodedImage:
        """
        Download and encode an attachment using the gateway's transport.

        See :func:`replymux.images.resolve_image` for the failure modes.
        """
        return await resolve_image(token, attachment, http_client=self.http_client)


async def generate(
    provider: str,
    api_key: str,
    model: str,
    system_prompt: str,
    messages: List[ConversationMessage],
    options: Optional[GenerationOptions] = None,
    *,
    postprocess: bool = True,
) -> GenerationResult:
    """Generate one reply with a short-lived default :class:`ReplyGateway`."""
    async with ReplyGateway() as gateway:
        return await gateway.generate(
            provider, api_key, model, system_prompt, messages, options, postprocess=postprocess
        )
