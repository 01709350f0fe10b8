"""OpenAI transport exposing a chat completion as a stream of text deltas."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Optional

import openai
from openai import OpenAI  # type: ignore

from .config import Settings

logger = logging.getLogger(__name__)


def build_openai_client(settings: Settings) -> OpenAI:
    """Create the SDK client from resolved settings."""
    client_kwargs: Dict[str, Any] = {"api_key": settings.api_key}
    if settings.base_url:
        client_kwargs["base_url"] = settings.base_url
    return OpenAI(**client_kwargs)  # type: ignore[arg-type]


class OpenAIStreamTransport:
    """Thin wrapper around the OpenAI Python SDK hiding streaming details."""

    def __init__(self, client: OpenAI):
        self.client = client

    @staticmethod
    def _delta_text(chunk: Any) -> str:
        choices = getattr(chunk, "choices", None)
        if not choices:
            return ""
        delta = getattr(choices[0], "delta", None)
        content = getattr(delta, "content", None)
        return content if isinstance(content, str) else ""

    def open(
        self,
        model: str,
        messages: List[Dict[str, str]],
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[str]:
        """Yield the non-empty text deltas of a streaming completion.

        The request is sent on the first ``next()``. The HTTP response is
        closed whenever the generator exits, including early ``close()``.
        """
        response = self.client.chat.completions.create(  # type: ignore[call-overload]
            model=model,
            messages=messages,
            stream=True,
        )
        try:
            for chunk in response:
                if cancel_event is not None and cancel_event.is_set():
                    logger.debug("Cancel requested; dropping remaining chunks")
                    break
                text = self._delta_text(chunk)
                if text:
                    yield text
        except openai.APIError as exc:
            logger.error("OpenAI API error while streaming: %s", exc)
            raise
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                close()
