"""
console.py

Responsibility: All human-facing terminal output.

- Colored status lines through a themed rich `Console`
- The usage screen, rendered from `templates/usage.txt.j2` with Jinja2

Nothing here decides control flow; callers pass finished messages in.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import IO, Any

from jinja2 import Environment, StrictUndefined
from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

TEMPLATES_DIR = Path(__file__).parent / "templates"

THEME = Theme(
    {
        "info": "cyan",
        "warning": "bold yellow",
        "error": "bold red",
        "success": "bold green",
    }
)


class ConsoleUI:
    """Themed output for build progress and failures."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.console = Console(
            theme=THEME,
            file=stream or sys.stdout,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    def show_info(self, message: str) -> None:
        self.console.print(escape(message), style="info")

    def show_warning(self, message: str) -> None:
        self.console.print(escape(message), style="warning")

    def show_error(self, message: str) -> None:
        self.console.print(escape(message), style="error")

    def show_success(self, message: str) -> None:
        self.console.print(escape(message), style="success")

    def show_text(self, text: str) -> None:
        self.console.print(escape(text), end="")


def render_usage(context: dict[str, Any]) -> str:
    """
    Render the usage screen.

    Undefined template variables raise instead of rendering empty.
    """
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    text = (TEMPLATES_DIR / "usage.txt.j2").read_text(encoding="utf-8")
    return env.from_string(text).render(**context)
