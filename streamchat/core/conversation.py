"""Conversation state: the ordered message log sent with every request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import ValidationError

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"

ROLES = (SYSTEM, USER, ASSISTANT)


@dataclass(frozen=True)
class Message:
    """A single turn attributed to ``system``, ``user`` or ``assistant``."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValidationError(f"Unknown message role: {self.role!r}")
        if not isinstance(self.content, str):
            raise ValidationError(
                f"Message content must be text, got {type(self.content).__name__}"
            )

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        if not isinstance(data, dict):
            raise ValidationError(f"Message must be a mapping, got {type(data).__name__}")
        return cls(role=data.get("role", ""), content=data.get("content"))


class Conversation:
    """Ordered log of messages with exactly one active system prompt.

    Index 0 always holds the active system message. Appending a system
    message replaces it instead of adding a second one.
    """

    def __init__(
        self,
        system_prompt: str,
        messages: Optional[Iterable[Message]] = None,
    ) -> None:
        self._messages: List[Message] = list(messages or [])
        if not self._messages or self._messages[0].role != SYSTEM:
            self._messages.insert(0, Message(SYSTEM, system_prompt))
        # Stray system messages further down are folded into index 0.
        stray = [m for m in self._messages[1:] if m.role == SYSTEM]
        if stray:
            self._messages = [stray[-1]] + [m for m in self._messages[1:] if m.role != SYSTEM]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise ValidationError(f"Expected a Message, got {type(message).__name__}")
        if message.role == SYSTEM:
            self._messages[0] = message
            return
        self._messages.append(message)

    def add_user(self, content: str) -> None:
        self.append(Message(USER, content))

    def add_assistant(self, content: str) -> None:
        self.append(Message(ASSISTANT, content))

    def reset(self, new_system_prompt: Optional[str] = None) -> None:
        """Truncate to a single system message.

        Keeps the currently active prompt unless *new_system_prompt* is given.
        """
        prompt = self.system_prompt if new_system_prompt is None else new_system_prompt
        self._messages = [Message(SYSTEM, prompt)]

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def system_prompt(self) -> str:
        return self._messages[0].content

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def to_payload(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self._messages]

    def turns(self) -> List[Message]:
        """Return user and assistant messages in submission order."""
        return [m for m in self._messages if m.role != SYSTEM]

    def last_assistant_text(self) -> str:
        for message in reversed(self._messages):
            if message.role == ASSISTANT and message.content.strip():
                return message.content
        return ""

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    @classmethod
    def from_dicts(cls, system_prompt: str, items: Iterable[Dict[str, Any]]) -> "Conversation":
        return cls(system_prompt, [Message.from_dict(item) for item in items])
