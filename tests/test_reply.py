import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from replymux.config import Settings
from replymux.context import BEHAVIOR_ADDENDUM
from replymux.errors import (
    ConfigError, ImageMetadataMissingError, ImageTooLargeError, ToolLoopExceededError, UpstreamError,
)
from replymux.images import TELEGRAM_API_URL, TELEGRAM_FILE_URL
from replymux.reply import (
    GENERIC_ERROR_MESSAGE, IMAGE_DOWNLOAD_FAILED_MESSAGE, IMAGE_TOO_LARGE_MESSAGE,
    IMAGE_UNSUPPORTED_MESSAGE, ReplyComposer,
)

from .payloads import chat_completion, ok, raw


def make_settings(**overrides):
    values = {
        "ai_provider": "grok",
        "ai_api_key": "k",
        "ai_model": "grok-test",
        "web_search": True,
        "ai_thinking": "disabled",
        "max_context_messages": 20,
        "telegram_bot_token": "bot-token",
    }
    values.update(overrides)
    return Settings(**values)


def make_gateway(result=None):
    gateway = MagicMock()
    gateway.resolve_image = AsyncMock(return_value={"media_type": "image/png", "data": "AQID"})
    gateway.generate = AsyncMock(return_value=result or {"text": "Sure thing.", "input_tokens": 5})
    return gateway


def history(count=3):
    records = []
    for i in range(1, count + 1):
        records.append({"role": "user", "text": f"message {i}", "user_name": "Alice", "message_id": i})
    return records


class TestCompose:

    @pytest.mark.asyncio
    async def test_text_reply(self):
        gateway = make_gateway()
        composer = ReplyComposer(gateway, make_settings())

        outcome = await composer.compose(history(), "message 3", 3, "Alice")

        assert outcome.ok
        assert outcome.text == "Sure thing."
        assert outcome.context_messages == 3
        provider, api_key, model, system_prompt, messages, options = gateway.generate.await_args.args
        assert (provider, api_key, model) == ("grok", "k", "grok-test")
        assert system_prompt.endswith(BEHAVIOR_ADDENDUM)
        assert messages[-1] == {"role": "user", "content": "[Alice]: message 3"}
        assert options == {"web_search": True, "thinking": "disabled"}

    @pytest.mark.asyncio
    async def test_context_window(self):
        gateway = make_gateway()
        composer = ReplyComposer(gateway, make_settings(max_context_messages=20))

        outcome = await composer.compose(history(10), "message 10", 10, "Alice", max_context_messages=4)

        messages = gateway.generate.await_args.args[4]
        assert len(messages) == 4
        assert messages[0]["content"] == "[Alice]: message 7"
        assert outcome.context_messages == 4

    @pytest.mark.asyncio
    async def test_zero_context_sends_no_history(self):
        gateway = make_gateway()
        composer = ReplyComposer(gateway, make_settings(max_context_messages=20))

        outcome = await composer.compose(history(10), "message 10", 10, "Alice", max_context_messages=0)

        assert gateway.generate.await_args.args[4] == []
        assert outcome.context_messages == 0

    @pytest.mark.asyncio
    async def test_custom_prompt(self):
        gateway = make_gateway()
        composer = ReplyComposer(gateway, make_settings())

        await composer.compose(history(), "message 3", 3, "Alice", custom_prompt="Talk like a pirate.")

        system_prompt = gateway.generate.await_args.args[3]
        assert system_prompt.startswith("Talk like a pirate.")

    @pytest.mark.asyncio
    async def test_image_attached_to_its_turn(self):
        gateway = make_gateway()
        composer = ReplyComposer(gateway, make_settings())
        image = {"file_id": "f1", "file_size": 100}

        outcome = await composer.compose(history(), "message 3", 3, "Alice", image=image)

        assert outcome.ok
        gateway.resolve_image.assert_awaited_once_with("bot-token", image)
        messages = gateway.generate.await_args.args[4]
        assert messages[-1]["content"][1] == {"type": "image", "media_type": "image/png", "data": "AQID"}

    @pytest.mark.asyncio
    async def test_moonshot_image_is_sent(self):
        gateway = make_gateway()
        composer = ReplyComposer(gateway, make_settings(ai_provider="moonshot"))

        outcome = await composer.compose(history(), "what is this", 3, "Alice", image={"file_id": "f1"})

        assert outcome.ok
        gateway.resolve_image.assert_awaited_once()
        assert gateway.generate.await_args.args[0] == "moonshot"
        messages = gateway.generate.await_args.args[4]
        assert messages[-1]["content"][1]["type"] == "image"

    @pytest.mark.asyncio
    async def test_moonshot_rejects_image(self):
        gateway = make_gateway()
        gateway.generate.side_effect = UpstreamError("moonshot", 400, "Image input not supported for this model")
        composer = ReplyComposer(gateway, make_settings(ai_provider="moonshot"))

        outcome = await composer.compose(history(), "what is this", 3, "Alice", image={"file_id": "f1"})

        assert outcome.error == "image_unsupported"
        assert outcome.text == IMAGE_UNSUPPORTED_MESSAGE

    @pytest.mark.asyncio
    async def test_image_needs_bot_token(self):
        composer = ReplyComposer(make_gateway(), make_settings(telegram_bot_token=None))
        with pytest.raises(ConfigError, match="TELEGRAM_BOT_TOKEN"):
            await composer.compose(history(), "x", 3, "Alice", image={"file_id": "f1"})

    @pytest.mark.asyncio
    async def test_image_too_large(self):
        gateway = make_gateway()
        gateway.resolve_image.side_effect = ImageTooLargeError(6_000_000, 5 * 1024 * 1024)
        composer = ReplyComposer(gateway, make_settings())

        outcome = await composer.compose(history(), "x", 3, "Alice", image={"file_id": "f1"})

        assert outcome.error == "image_too_large"
        assert outcome.text == IMAGE_TOO_LARGE_MESSAGE
        gateway.generate.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [
        ImageMetadataMissingError("f1"),
        UpstreamError("Telegram", 400, "Bad Request"),
        httpx.ConnectError("offline"),
    ])
    async def test_image_download_failed(self, failure):
        gateway = make_gateway()
        gateway.resolve_image.side_effect = failure
        composer = ReplyComposer(gateway, make_settings())

        outcome = await composer.compose(history(), "x", 3, "Alice", image={"file_id": "f1"})

        assert outcome.error == "image_download_failed"
        assert outcome.text == IMAGE_DOWNLOAD_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_model_rejects_image(self):
        gateway = make_gateway()
        gateway.generate.side_effect = UpstreamError("grok", 400, "Image inputs are not supported by this model")
        composer = ReplyComposer(gateway, make_settings())

        outcome = await composer.compose(history(), "x", 3, "Alice", image={"file_id": "f1"})

        assert outcome.error == "image_unsupported"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure", [
        UpstreamError("grok", 500, "Internal Server Error"),
        ToolLoopExceededError(5),
        httpx.ReadTimeout("slow"),
    ])
    async def test_generation_failure(self, failure, caplog):
        gateway = make_gateway()
        gateway.generate.side_effect = failure
        composer = ReplyComposer(gateway, make_settings())

        outcome = await composer.compose(history(), "x", 3, "Alice")

        assert not outcome.ok
        assert outcome.error == "generation_failed"
        assert outcome.text == GENERIC_ERROR_MESSAGE
        assert "Reply generation failed" in caplog.text


class TestComposeEndToEnd:

    @pytest.mark.asyncio
    async def test_grok_image_reply(self, gateway, upstream):
        """An image turn goes to plain chat-completions even with search on."""
        upstream.add(f"{TELEGRAM_API_URL}bot-token/getFile", ok({"ok": True, "result": {"file_path": "p/1.jpg"}}))
        upstream.add(f"{TELEGRAM_FILE_URL}bot-token/", raw(b"\x01\x02\x03", "image/jpeg"))
        upstream.add("api.x.ai", ok(chat_completion("A small square [1].")))
        composer = ReplyComposer(gateway, make_settings())

        outcome = await composer.compose(history(), "message 3", 3, "Alice", image={"file_id": "f1"})

        # No search ran, so the bare marker is not treated as a citation
        assert outcome.text == "A small square [1]."
        body = upstream.bodies("api.x.ai")[0]
        assert str(upstream.calls("api.x.ai")[0].url).endswith("/chat/completions")
        assert body["messages"][-1]["content"][1]["image_url"]["url"] == "data:image/jpeg;base64,AQID"
