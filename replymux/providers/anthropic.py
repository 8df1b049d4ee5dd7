from typing import List, Optional

import anthropic
import httpx
from anthropic import AsyncAnthropic

from .base import BaseLLMProvider, MAX_TOKENS
from ..normalize import extract_messages_api, to_messages_api
from ..types import ConversationMessage, GenerationOptions, GenerationResult


class AnthropicProvider(BaseLLMProvider):
    """
    Provider for the Anthropic (Claude) Messages API.

    This provider has no search capability, so the ``web_search`` option is
    ignored.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        provider_name: str = "claude",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key, base_url, provider_name, http_client)
        self.client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            http_client=http_client,
            max_retries=0,
        )

    @property
    def error_label(self) -> str:
        return "Claude"

    async def chat(
        self,
        model: str,
        system_prompt: str,
        messages: List[ConversationMessage],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        Send a request to ``/v1/messages``.

        The system prompt is a separate top-level parameter in this API, and
        image parts are sent as base64 ``image`` blocks.

        Args:
            model (str): The specific Claude model identifier.
            system_prompt (str): Instructions for the model.
            messages (List[ConversationMessage]): Conversation history.
            options (GenerationOptions, optional): Unused by this provider.

        Returns:
            GenerationResult: Text of the first text block plus usage.
        """
        try:
            raw = await self.client.messages.with_raw_response.create(
                model=model,
                max_tokens=MAX_TOKENS,
                system=system_prompt,
                messages=to_messages_api(messages),
            )
        except anthropic.APIStatusError as e:
            raise self.upstream_error(e) from e

        return extract_messages_api(raw.http_response.json())
