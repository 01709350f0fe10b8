"""Paste guard: tell a multi-line paste apart from a deliberate Enter."""
from __future__ import annotations

import logging
import select
import sys
import time
from typing import IO, List, Optional

logger = logging.getLogger(__name__)

# Hard limits avoid accidental runaway reads.
MAX_LINES = 512
MAX_CHARS = 64_000


def _strip_paste_markers(text: str) -> str:
    # Bracketed-paste escape sequences leak through when readline is off.
    return text.replace("\x1b[200~", "").replace("\x1b[201~", "")


class PasteGuard:
    """Drain lines that arrive within ``delay_ms`` of an Enter.

    Text pasted into the terminal shows up as several lines in quick
    succession; anything already waiting on stdin when the first line is
    read belongs to the same submission.
    """

    def __init__(self, delay_ms: int = 60, stream: Optional[IO[str]] = None) -> None:
        self.delay = max(0, delay_ms) / 1000.0
        self._stream = stream

    @property
    def stream(self) -> IO[str]:
        return self._stream if self._stream is not None else sys.stdin

    @property
    def enabled(self) -> bool:
        return self.delay > 0

    def _ready(self, timeout: float) -> bool:
        try:
            ready, _, _ = select.select([self.stream], [], [], timeout)
        except (OSError, ValueError):
            # Not a selectable file (tests, Windows consoles): no paste detection.
            return False
        return bool(ready)

    def collect(self, first_line: str) -> str:
        """Return *first_line* joined with any immediately pending lines."""
        first_line = _strip_paste_markers(first_line)
        if not self.enabled or not self._ready(0.0):
            return first_line

        lines: List[str] = [first_line]
        total_chars = len(first_line)
        deadline = time.monotonic() + self.delay
        while len(lines) < MAX_LINES and total_chars < MAX_CHARS:
            timeout = max(0.0, deadline - time.monotonic())
            if not self._ready(timeout):
                break
            extra = self.stream.readline()
            if not extra:
                break
            extra = _strip_paste_markers(extra.rstrip("\r\n"))
            lines.append(extra)
            total_chars += len(extra) + 1
            # Each pasted line extends the quiet window.
            deadline = time.monotonic() + self.delay

        if len(lines) > 1:
            logger.debug("Paste guard merged %d lines", len(lines))
        return "\n".join(lines)
