"""Input mode state machine: single-line, multi-line composition and busy gating."""

from __future__ import annotations

import enum
import logging
from typing import List, Optional

from .errors import InvalidTransition

logger = logging.getLogger(__name__)


class InputMode(enum.Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    BUSY = "busy"
    TERMINAL = "terminal"


class InputStateMachine:
    """Track how typed lines become submissions.

    ``BUSY`` is the gate that keeps at most one exchange in flight: while
    it is set, :meth:`begin_exchange` refuses and the caller must drop the
    submission instead of queueing it.
    """

    def __init__(self) -> None:
        self.mode = InputMode.IDLE
        self.lines: List[str] = []

    # ---------------- Queries ----------------

    @property
    def busy(self) -> bool:
        return self.mode is InputMode.BUSY

    @property
    def composing(self) -> bool:
        return self.mode is InputMode.COMPOSING

    @property
    def finished(self) -> bool:
        return self.mode is InputMode.TERMINAL

    def _require(self, *modes: InputMode) -> None:
        if self.mode not in modes:
            allowed = ", ".join(m.value for m in modes)
            raise InvalidTransition(f"Cannot do that while {self.mode.value} (needs {allowed}).")

    # ---------------- Multi-line composition ----------------

    def begin_compose(self) -> None:
        self._require(InputMode.IDLE)
        self.lines = []
        self.mode = InputMode.COMPOSING

    def add_line(self, text: str) -> None:
        self._require(InputMode.COMPOSING)
        self.lines.append(text)

    def end_compose(self) -> Optional[str]:
        """Leave composition and return the trimmed text, or None if blank.

        The buffer is cleared either way and the machine is back in ``IDLE``;
        a non-blank result is expected to be handed to :meth:`begin_exchange`.
        """
        self._require(InputMode.COMPOSING)
        text = "\n".join(self.lines).strip()
        self.lines = []
        self.mode = InputMode.IDLE
        return text or None

    def cancel_compose(self) -> None:
        self._require(InputMode.COMPOSING)
        self.lines = []
        self.mode = InputMode.IDLE

    # ---------------- Single-line entry ----------------

    @staticmethod
    def accept_line(text: str) -> Optional[str]:
        """Return the submission for a single typed line, or None if blank."""
        stripped = text.strip()
        return stripped or None

    # ---------------- Exchange gating ----------------

    def begin_exchange(self) -> bool:
        """Enter ``BUSY``. Returns False if an exchange is already running."""
        if self.mode is InputMode.BUSY:
            logger.debug("Submission rejected: an exchange is already in flight")
            return False
        self._require(InputMode.IDLE)
        self.mode = InputMode.BUSY
        return True

    def finish_exchange(self) -> None:
        if self.mode is InputMode.TERMINAL:
            return
        self._require(InputMode.BUSY)
        self.mode = InputMode.IDLE

    def quit(self) -> None:
        self.lines = []
        self.mode = InputMode.TERMINAL
