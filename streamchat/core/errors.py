"""Exception types raised by the streaming chat core."""

from __future__ import annotations

from typing import Optional


class StreamChatError(Exception):
    """Base class for all errors raised by :mod:`streamchat`."""


class ValidationError(StreamChatError, ValueError):
    """A message, model name or conversation was rejected before sending."""


class InvalidTransition(StreamChatError):
    """The input state machine was driven through an illegal transition."""


class TransportError(StreamChatError):
    """A streaming exchange terminated abnormally.

    ``partial_text`` holds whatever text had been accumulated before the
    failure so callers can still commit it as a truncated assistant turn.
    """

    def __init__(
        self,
        message: str,
        *,
        partial_text: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.partial_text = partial_text
        self.cause = cause


class StreamCancelled(TransportError):
    """The exchange was aborted by the user while it was in flight."""
