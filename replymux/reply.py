"""
Turns stored chat history plus one inbound message into a reply.

This is the caller of the gateway: it owns context assembly and the
user-facing wording for every failure the gateway reports.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import anthropic
import httpx
import openai

from .client import ReplyGateway
from .config import Settings
from .context import StoredMessage, attach_image, build_system_prompt, format_conversation
from .errors import (
    ConfigError, ImageError, ImageTooLargeError, ReplymuxError, UpstreamError,
    is_image_unsupported_error,
)
from .types import GenerationOptions, GenerationResult, ImageAttachment

logger = logging.getLogger(__name__)

IMAGE_TOO_LARGE_MESSAGE = "That image is too large to process. Please upload a smaller image (max 5MB)."
IMAGE_UNSUPPORTED_MESSAGE = (
    "Image understanding isn't supported with the current AI provider/model. "
    "Try a different model or ask a text-only question."
)
IMAGE_DOWNLOAD_FAILED_MESSAGE = "I couldn't download that image. Please try again or re-upload it."
GENERIC_ERROR_MESSAGE = "Sorry, I encountered an error processing that message. Please try again."

# Failures that degrade to an apology instead of propagating
_GENERATION_ERRORS = (ReplymuxError, openai.APIError, anthropic.APIError, httpx.HTTPError)


@dataclass
class ReplyOutcome:
    """
    What to send back.

    Attributes:
        text: Message for the chat, already cleaned. On failure, the
            user-facing explanation.
        result: The gateway result when generation succeeded.
        error: None on success, otherwise one of ``image_too_large``,
            ``image_download_failed``, ``image_unsupported``,
            ``generation_failed``.
        context_messages: Number of turns sent to the model.
    """
    text: str
    result: Optional[GenerationResult] = None
    error: Optional[str] = None
    context_messages: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class ReplyComposer:
    """
    Compose replies with the configured provider.
    """

    def __init__(self, gateway: ReplyGateway, settings: Settings):
        self.gateway = gateway
        self.settings = settings

    async def compose(
        self,
        history: Sequence[StoredMessage],
        message_text: str,
        message_id: int,
        user_name: str,
        image: Optional[ImageAttachment] = None,
        custom_prompt: Optional[str] = None,
        max_context_messages: Optional[int] = None,
    ) -> ReplyOutcome:
        """
        Build context, resolve any image, generate, and clean the reply.

        Args:
            history: Stored records, oldest first, including the inbound
                message itself.
            message_text: Text of the inbound message (mention stripped).
            message_id: Platform id of the inbound message.
            user_name: Display name of the sender.
            image: Attachment to include, if any.
            custom_prompt: Chat-specific system prompt; ignored if invalid.
            max_context_messages: Chat-specific context window; None means
                the configured one. 0 sends no history.

        Returns:
            ReplyOutcome: Never raises for upstream, image or transport
            failures; those become an outcome with ``error`` set.

        Raises:
            ConfigError: An image was supplied but no bot token is configured.
        """
        settings = self.settings
        limit = settings.max_context_messages if max_context_messages is None else max_context_messages
        records = list(history)[-limit:] if limit > 0 else []
        conversation = format_conversation(records)
        system_prompt = build_system_prompt(custom_prompt)

        if image:
            if not settings.telegram_bot_token:
                raise ConfigError("Missing required environment variable: TELEGRAM_BOT_TOKEN")

            try:
                encoded = await self.gateway.resolve_image(settings.telegram_bot_token, image)
            except ImageTooLargeError as e:
                logger.warning("Image rejected: %s", e)
                return ReplyOutcome(IMAGE_TOO_LARGE_MESSAGE, error="image_too_large")
            except (ImageError, UpstreamError, httpx.HTTPError) as e:
                logger.warning("Image download failed: %s", e)
                return ReplyOutcome(IMAGE_DOWNLOAD_FAILED_MESSAGE, error="image_download_failed")

            conversation = attach_image(conversation, records, message_id, encoded, user_name, message_text)

        options: GenerationOptions = {
            "web_search": settings.web_search,
            "thinking": settings.ai_thinking,
        }
        try:
            result = await self.gateway.generate(
                settings.ai_provider,
                settings.ai_api_key,
                settings.ai_model,
                system_prompt,
                conversation,
                options,
            )
        except _GENERATION_ERRORS as e:
            if image and is_image_unsupported_error(e):
                logger.warning("Model rejected image input: %s", e)
                return ReplyOutcome(IMAGE_UNSUPPORTED_MESSAGE, error="image_unsupported")
            logger.exception("Reply generation failed for provider %s", settings.ai_provider)
            return ReplyOutcome(GENERIC_ERROR_MESSAGE, error="generation_failed")

        queries = result.get("web_search_queries")
        logger.info(
            "Reply generated provider=%s model=%s input_tokens=%s output_tokens=%s "
            "context_messages=%d web_search_queries=%s",
            settings.ai_provider,
            settings.ai_model,
            result.get("input_tokens"),
            result.get("output_tokens"),
            len(conversation),
            ", ".join(queries) if queries else None,
        )
        return ReplyOutcome(result["text"], result=result, context_messages=len(conversation))
