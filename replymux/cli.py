"""
Command-line entry point: send one prompt through the gateway and print the reply.
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import anthropic
import httpx
import openai
from rich.console import Console

from .client import PROVIDERS, ReplyGateway
from .config import THINKING_MODES, load_settings
from .context import build_system_prompt
from .errors import ReplymuxError
from .rich_printer import RichPrinter
from .types import ConversationMessage, GenerationOptions
from .utils import create_image_content, create_message, create_text_content, encode_image_file

# Reported as one error line instead of a traceback
_CLI_ERRORS = (ReplymuxError, openai.APIError, anthropic.APIError, httpx.HTTPError, FileNotFoundError)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="replymux", description="Generate one AI reply.")
    parser.add_argument("prompt", help="User message to send")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), help="Overrides AI_PROVIDER")
    parser.add_argument("--model", help="Overrides AI_MODEL")
    parser.add_argument("--system", help="Custom system prompt")
    parser.add_argument("--web-search", action="store_true", default=None, help="Enable web search")
    parser.add_argument("--thinking", choices=THINKING_MODES, help="Overrides AI_THINKING")
    parser.add_argument("--image", help="Path of a local image to attach")
    parser.add_argument("--raw", action="store_true", help="Skip citation stripping and truncation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_messages(prompt: str, image_path: Optional[str] = None) -> List[ConversationMessage]:
    if not image_path:
        return [create_message("user", prompt)]
    data, media_type = encode_image_file(image_path)
    return [create_message("user", [create_text_content(prompt), create_image_content(data, media_type)])]


async def run(args: argparse.Namespace, gateway: Optional[ReplyGateway] = None, console: Optional[Console] = None) -> int:
    console = console or Console()
    owns_gateway = gateway is None
    gateway = gateway or ReplyGateway()
    try:
        settings = load_settings()
        provider = args.provider or settings.ai_provider
        model = args.model or settings.ai_model
        options: GenerationOptions = {
            "web_search": settings.web_search if args.web_search is None else args.web_search,
            "thinking": args.thinking or settings.ai_thinking,
        }
        result = await gateway.generate(
            provider,
            settings.ai_api_key,
            model,
            build_system_prompt(args.system),
            build_messages(args.prompt, args.image),
            options,
            postprocess=not args.raw,
        )
    except _CLI_ERRORS as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    finally:
        if owns_gateway:
            await gateway.aclose()

    RichPrinter(console=console).print_result(result, provider, model)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
