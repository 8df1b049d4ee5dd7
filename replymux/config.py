"""
Settings loaded from the environment and an optional ``.env`` file.

The gateway never reads these itself; callers pass the values in explicitly.
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import dotenv

from .errors import ConfigError
from .types import ThinkingMode

DEFAULT_PROVIDER = "moonshot"
DEFAULT_MODEL = "kimi-k2-0711-preview"
DEFAULT_MAX_CONTEXT_MESSAGES = 20

THINKING_MODES = ("disabled", "enabled", "auto")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables"""

    ai_provider: str
    ai_api_key: str
    ai_model: str
    web_search: bool
    ai_thinking: ThinkingMode
    max_context_messages: int
    telegram_bot_token: Optional[str] = None


def require_env(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def read_thinking_mode(environ: Mapping[str, str], name: str) -> ThinkingMode:
    """
    Parse an optional thinking-mode variable.

    Unset or empty means ``disabled``. Matching is case-insensitive.

    Raises:
        ConfigError: The value is not disabled, enabled or auto.
    """
    value = environ.get(name)
    if not value:
        return "disabled"

    normalized = value.strip().lower()
    if normalized not in THINKING_MODES:
        raise ConfigError(
            f"Invalid value for environment variable: {name}. Expected disabled, enabled, or auto."
        )
    return normalized


def read_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Invalid integer for environment variable: {name}") from None


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> Settings:
    """
    Build :class:`Settings`.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ`` after
            loading ``.env`` (existing variables win).
        dotenv_path: Explicit ``.env`` location; searched for when omitted.

    Raises:
        ConfigError: ``AI_API_KEY`` is missing or a value is malformed.
    """
    if environ is None:
        dotenv.load_dotenv(dotenv_path)
        environ = os.environ

    return Settings(
        ai_provider=environ.get("AI_PROVIDER") or DEFAULT_PROVIDER,
        ai_api_key=require_env(environ, "AI_API_KEY"),
        ai_model=environ.get("AI_MODEL") or DEFAULT_MODEL,
        web_search=environ.get("WEB_SEARCH") == "true",
        ai_thinking=read_thinking_mode(environ, "AI_THINKING"),
        max_context_messages=read_int(environ, "MAX_CONTEXT_MESSAGES", DEFAULT_MAX_CONTEXT_MESSAGES),
        telegram_bot_token=environ.get("TELEGRAM_BOT_TOKEN") or None,
    )
