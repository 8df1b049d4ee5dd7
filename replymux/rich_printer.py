"""
Rich printer for displaying generation results in a terminal.
"""
import json
from typing import Any, Dict, Optional

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from .types import GenerationResult


class RichPrinter:
    """
    Display a :class:`GenerationResult` as a rich panel.

    Attributes:
        title: Title for the display panel
        show_metadata: Whether to show token counts and search activity
        code_theme: Theme for code blocks
        show_provider_info: Whether to show provider and model in the title
        border_style: Border style for the panel
    """

    def __init__(
        self,
        title: str = "Response",
        show_metadata: bool = True,
        code_theme: str = "coffee",
        show_provider_info: bool = True,
        border_style: str = "green",
        console: Optional[Console] = None,
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.code_theme = code_theme
        self.show_provider_info = show_provider_info
        self.border_style = border_style
        self.console = console or Console()
        self._result: Optional[GenerationResult] = None

    def print_result(
        self,
        result: GenerationResult,
        provider: str = "",
        model: str = "",
    ) -> GenerationResult:
        """
        Print the result and return it unchanged for chaining.
        """
        self._result = result
        self.console.print(
            Panel(
                self._build_content(result),
                title=self._build_title(provider, model),
                border_style=self.border_style,
                padding=(1, 2),
            )
        )
        return result

    def _build_title(self, provider: str, model: str) -> str:
        title_parts = [f"[bold]{self.title}[/bold]"]
        if self.show_provider_info and provider:
            label = f"{provider}/{model}" if model else provider
            title_parts.append(f"[dim]({label})[/dim]")
        return " ".join(title_parts)

    def _build_content(self, result: GenerationResult) -> Any:
        text = result.get("text", "")
        if not text.strip():
            return Text("(empty response)", style="dim italic")

        markdown = Markdown(text, code_theme=self.code_theme)

        meta = self._metadata(result)
        if self.show_metadata and meta:
            metadata_panel = Panel(
                Syntax(json.dumps(meta, indent=2), "json", background_color="default"),
                title="[bold]Metadata[/bold]",
                border_style="dim",
            )
            return Group(markdown, metadata_panel)

        return markdown

    @staticmethod
    def _metadata(result: GenerationResult) -> Dict[str, Any]:
        return {key: value for key, value in result.items() if key != "text"}

    def get_text(self) -> str:
        """Get the text from the last printed result."""
        if self._result:
            return self._result.get("text", "")
        return ""
