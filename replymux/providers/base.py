from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from ..errors import UpstreamError
from ..types import ConversationMessage, GenerationOptions, GenerationResult

# Fixed output budget for every request that takes one
MAX_TOKENS = 1024


class BaseLLMProvider(ABC):
    """
    Abstract base class for upstream provider adapters.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        provider_name: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.provider_name = provider_name
        self.http_client = http_client

    @abstractmethod
    async def chat(
        self,
        model: str,
        system_prompt: str,
        messages: List[ConversationMessage],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        Send one generation request to the provider.

        Args:
            model (str): The model identifier.
            system_prompt (str): Instructions for the model.
            messages (List[ConversationMessage]): Conversation, oldest first.
                Never mutated.
            options (GenerationOptions, optional): Per-call switches.

        Returns:
            GenerationResult: Uniform result with ``text`` always set.

        Raises:
            UpstreamError: The provider answered with a non-success status.
        """
        pass

    @property
    def error_label(self) -> str:
        """Name used as the prefix of upstream error messages."""
        return self.provider_name

    def upstream_error(self, exc) -> UpstreamError:
        """
        Translate an SDK status error into an ``UpstreamError``.

        Both the OpenAI and Anthropic SDKs expose ``status_code`` and the raw
        ``httpx.Response`` on their ``APIStatusError``.
        """
        return UpstreamError(self.error_label, exc.status_code, exc.response.text)
