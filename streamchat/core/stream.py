"""Streaming exchange coordinator.

Drives one request/response cycle: sends the whole conversation, forwards
each text delta to the caller as it arrives and reports the accumulated
reply exactly once through ``on_done`` on every exit path.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Union

from .conversation import Message
from .errors import StreamCancelled, TransportError, ValidationError

logger = logging.getLogger(__name__)

StartCallback = Callable[[], None]
DeltaCallback = Callable[[str], None]
DoneCallback = Callable[[str], None]


class Transport(Protocol):
    """Anything able to turn a conversation into a lazy sequence of deltas."""

    def open(
        self,
        model: str,
        messages: List[Dict[str, str]],
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterable[str]:
        ...


class StreamState(enum.Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StreamSession:
    """Transient per-exchange state; never shared between exchanges."""

    parts: List[str] = field(default_factory=list)
    state: StreamState = StreamState.PENDING
    fragments: int = 0

    @property
    def accumulated(self) -> str:
        return "".join(self.parts)

    def feed(self, fragment: str) -> None:
        self.state = StreamState.STREAMING
        self.parts.append(fragment)
        self.fragments += 1


def _payload(messages: Sequence[Union[Message, Dict[str, Any]]]) -> List[Dict[str, str]]:
    payload: List[Dict[str, str]] = []
    for item in messages:
        message = item if isinstance(item, Message) else Message.from_dict(item)
        payload.append(message.to_dict())
    return payload


class StreamCoordinator:
    """Run streaming exchanges against a :class:`Transport`.

    The coordinator keeps no per-exchange state on the instance, so a single
    coordinator can serve every exchange of a session. Serialising exchanges
    is the caller's job (see :class:`~streamchat.core.input_state.InputStateMachine`).
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def run_exchange(
        self,
        model: str,
        messages: Sequence[Union[Message, Dict[str, Any]]],
        *,
        on_start: Optional[StartCallback] = None,
        on_delta: Optional[DeltaCallback] = None,
        on_done: Optional[DoneCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Stream one reply and return its full text.

        Raises :class:`ValidationError` before any callback fires when the
        model or conversation is unusable. Any failure after that surfaces
        as :class:`TransportError` (or :class:`StreamCancelled`) carrying
        the partial text; ``on_done`` has already been called by then.
        """
        if not isinstance(model, str) or not model.strip():
            raise ValidationError("A model name is required.")
        if not messages:
            raise ValidationError("Cannot send an empty conversation.")
        payload = _payload(messages)

        session = StreamSession()
        logger.debug("Opening stream: model=%s messages=%d", model, len(payload))
        try:
            # Inside the try so a failing render sink still gets on_done.
            if on_start is not None:
                on_start()
            fragments: Iterator[str] = iter(self.transport.open(model, payload, cancel_event))
            try:
                for fragment in fragments:
                    if cancel_event is not None and cancel_event.is_set():
                        raise StreamCancelled(
                            "Exchange cancelled.", partial_text=session.accumulated
                        )
                    if not fragment:
                        continue
                    session.feed(fragment)
                    if on_delta is not None:
                        on_delta(fragment)
                if cancel_event is not None and cancel_event.is_set():
                    raise StreamCancelled(
                        "Exchange cancelled.", partial_text=session.accumulated
                    )
            finally:
                close = getattr(fragments, "close", None)
                if close is not None:
                    close()
        except StreamCancelled as exc:
            session.state = StreamState.FAILED
            exc.partial_text = session.accumulated
            logger.info("Stream cancelled after %d fragment(s)", session.fragments)
            raise
        except KeyboardInterrupt as exc:
            session.state = StreamState.FAILED
            logger.info("Stream interrupted after %d fragment(s)", session.fragments)
            raise StreamCancelled(
                "Exchange interrupted.", partial_text=session.accumulated, cause=exc
            ) from exc
        except Exception as exc:
            session.state = StreamState.FAILED
            logger.warning(
                "Stream failed after %d fragment(s): %s", session.fragments, exc
            )
            raise TransportError(
                f"Streaming request failed: {exc}",
                partial_text=session.accumulated,
                cause=exc,
            ) from exc
        else:
            session.state = StreamState.DONE
            logger.debug("Stream finished: %d fragment(s)", session.fragments)
        finally:
            if on_done is not None:
                on_done(session.accumulated)

        return session.accumulated
