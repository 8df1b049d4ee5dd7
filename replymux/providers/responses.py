from typing import List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .base import BaseLLMProvider
from ..normalize import extract_responses, to_responses_input
from ..types import ConversationMessage, GenerationOptions, GenerationResult

WEB_SEARCH_TOOL = {"type": "web_search"}


class ResponsesSearchProvider(BaseLLMProvider):
    """
    Provider for the Responses API with the server-side ``web_search`` tool.

    Used by OpenAI and xAI. This API family does not take inline images here,
    so multimodal content is flattened to text with an ``[image]`` placeholder.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key, base_url, provider_name, http_client)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=http_client,
            max_retries=0,
        )

    async def chat(
        self,
        model: str,
        system_prompt: str,
        messages: List[ConversationMessage],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        POST ``/responses`` with web search enabled and nothing stored upstream.

        Returns:
            GenerationResult: Text of the first message item. When any
            ``web_search_call`` items came back, ``web_search_queries`` is
            ``["web_search (N call(s))"]``.
        """
        try:
            raw = await self.client.responses.with_raw_response.create(
                model=model,
                input=to_responses_input(system_prompt, messages),
                tools=[WEB_SEARCH_TOOL],
                store=False,
            )
        except openai.APIStatusError as e:
            raise self.upstream_error(e) from e

        return extract_responses(raw.http_response.json())
