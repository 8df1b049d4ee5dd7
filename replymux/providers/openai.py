from typing import Dict, Any, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .base import BaseLLMProvider, MAX_TOKENS
from ..normalize import extract_chat_completion, to_chat_completions
from ..tool_loop import WEB_SEARCH_TOOLS, run_tool_loop
from ..types import ConversationMessage, GenerationOptions, GenerationResult


class OpenAIProvider(BaseLLMProvider):
    """
    Provider for OpenAI-compatible chat-completions APIs (OpenAI, Moonshot, xAI).
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        http_client: Optional[httpx.AsyncClient] = None,
        supports_thinking: bool = False,
    ):
        super().__init__(api_key, base_url, provider_name, http_client)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=http_client,
            max_retries=0,
        )
        self.supports_thinking = supports_thinking

    async def complete(
        self,
        model: str,
        request_messages: List[Dict[str, Any]],
        options: Optional[GenerationOptions] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        POST ``/chat/completions`` and return the raw JSON body.

        The raw body is used instead of the SDK's parsed model so that
        provider-specific tool-call shapes come back untouched.

        Args:
            model (str): The model identifier.
            request_messages (List[Dict]): Already-converted ``messages`` array.
            options (GenerationOptions, optional): ``thinking`` is forwarded as
                ``{"thinking": {"type": ...}}`` only when this provider
                supports it.
            tools (List[Dict], optional): Tool descriptors to attach.

        Returns:
            Dict[str, Any]: The decoded response body.

        Raises:
            UpstreamError: On a non-success status.
        """
        options = options or {}
        request_kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": MAX_TOKENS,
            "messages": request_messages,
        }
        if tools:
            request_kwargs["tools"] = tools
        if self.supports_thinking and options.get("thinking"):
            request_kwargs["extra_body"] = {"thinking": {"type": options["thinking"]}}

        try:
            raw = await self.client.chat.completions.with_raw_response.create(**request_kwargs)
        except openai.APIStatusError as e:
            raise self.upstream_error(e) from e

        return raw.http_response.json()

    async def chat(
        self,
        model: str,
        system_prompt: str,
        messages: List[ConversationMessage],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        Send a plain chat-completions request with no tools attached.

        Returns:
            GenerationResult: ``choices[0].message.content`` (empty string if
            null) plus usage.
        """
        data = await self.complete(model, to_chat_completions(system_prompt, messages), options)
        return extract_chat_completion(data)


class WebSearchChatProvider(OpenAIProvider):
    """
    Chat-completions provider with the builtin ``$web_search`` tool attached.

    The search runs upstream, but the protocol still needs a tool-result round
    trip per call, so ``chat`` drives the bounded tool loop.
    """

    async def chat(
        self,
        model: str,
        system_prompt: str,
        messages: List[ConversationMessage],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        Run the tool loop until the model stops.

        Returns:
            GenerationResult: Token counts are summed across rounds;
            ``web_search_queries`` holds the raw argument string of every
            tool call.

        Raises:
            ToolLoopExceededError: The round cap was reached.
        """
        async def send(request_messages: List[Dict[str, Any]]) -> Dict[str, Any]:
            return await self.complete(model, request_messages, options, tools=WEB_SEARCH_TOOLS)

        return await run_tool_loop(send, system_prompt, messages)
