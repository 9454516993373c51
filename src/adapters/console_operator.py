"""Terminal `Operator`: typer prompts plus rich output."""

from __future__ import annotations

import typer
from rich.console import Console

from core.domain.models import MessageLevel

_STYLES: dict[MessageLevel, tuple[str, str]] = {
    MessageLevel.INFO: ("bold blue", ""),
    MessageLevel.SUCCESS: ("bold green", "✓ "),
    MessageLevel.WARNING: ("bold yellow", "! "),
    MessageLevel.ERROR: ("bold red", "✗ "),
}


class ConsoleOperator:
    """Asks on the terminal; errors go to stderr."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None) -> None:
        self._console = console or Console()
        self._err_console = err_console or Console(stderr=True)

    def confirm(self, question: str, *, default: bool) -> bool:
        return typer.confirm(question, default=default)

    def ask(self, question: str, *, default: str = "") -> str:
        return typer.prompt(question, default=default, show_default=bool(default))

    def notify(self, level: MessageLevel, message: str) -> None:
        if level is MessageLevel.PLAIN:
            self._console.print(message, markup=False, highlight=False)
            return

        style, prefix = _STYLES[level]
        console = self._err_console if level is MessageLevel.ERROR else self._console
        console.print(f"{prefix}{message}", style=style, markup=False, highlight=False)
