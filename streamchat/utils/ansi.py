"""Terminal styling for the chat REPL, built on :mod:`rich`.

Styles are named after what they mark in the transcript (a notice, an
error, a session name) so the palette can change in one place.
"""

import os
from rich.console import Console
from rich.markup import escape


console = Console()


class Ansi:
    """Role-named rich styles and the markup helpers that apply them."""

    HEADING = "bold magenta"
    INTRO = "yellow"
    NOTICE = "dim"
    ERROR = "red"
    NAME = "cyan"
    CURRENT = "green"

    @staticmethod
    def style(text: str, *styles: str) -> str:
        """Wrap *text* (already markup-safe) in rich markup unless ``NO_COLOR`` is set."""
        if os.getenv("NO_COLOR") is not None:
            return text
        return f"[{' '.join(styles)}]{text}[/]"

    @staticmethod
    def plain(text: str, *styles: str) -> str:
        """Escape user or model supplied *text*, then style it."""
        return Ansi.style(escape(text), *styles)

    @staticmethod
    def dim(text: str) -> str:
        return Ansi.style(text, Ansi.NOTICE)


def _label(name: str, colour: str) -> str:
    return Ansi.style(name, colour, "bold")


# Speaker and prompt markers shown at the start of transcript lines
USER_LABEL = _label("you", "blue")
ASSISTANT_LABEL = _label("ai", "green")
ERROR_LABEL = _label("error", "red")
WARNING_LABEL = _label("warning", "yellow")
PROMPT_LABEL = _label(">", "cyan")
COMPOSE_LABEL = Ansi.style("...", "cyan")
