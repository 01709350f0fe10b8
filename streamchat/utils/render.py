"""Console render sink for streamed replies."""
from __future__ import annotations

from typing import Optional

from rich.console import Console

from .ansi import ASSISTANT_LABEL, console as default_console
from .spinner import Spinner


class ConsoleSink:
    """Draw a streaming reply on the terminal.

    The spinner runs from :meth:`on_start` until the first delta; deltas are
    printed verbatim (no markup parsing) in the order they are delivered.
    """

    def __init__(self, console: Optional[Console] = None, spinner: Optional[Spinner] = None):
        self.console = console or default_console
        self.prefix = f"{ASSISTANT_LABEL}> "
        self._spinner = spinner
        self._ends_with_newline = True

    def on_start(self) -> None:
        self._ends_with_newline = True
        if self._spinner is None:
            self._spinner = Spinner(prefix=self.prefix)
        self._spinner.start()

    def _stop_spinner(self) -> None:
        if self._spinner is not None and self._spinner.running:
            self._spinner.stop()

    def on_delta(self, text: str) -> None:
        self._stop_spinner()
        self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)
        self.console.file.flush()
        self._ends_with_newline = text.endswith("\n")

    def on_done(self, full_text: str) -> None:
        self._stop_spinner()
        if not full_text:
            self.console.print("(no response)", style="dim", end="")
            self._ends_with_newline = False
        if not self._ends_with_newline:
            self.console.print()
