"""Session management: the conversation plus its on-disk persistence."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .conversation import Conversation
from .presets import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

# Offered by the interactive model picker; any other name is accepted too.
KNOWN_MODELS = [
    "gpt-4o-mini",
    "gpt-4o",
    "gpt-4.1",
    "gpt-4.1-mini",
    "gpt-5",
    "gpt-5-mini",
]


class Session:
    """Represents a chat session stored as a JSON file on disk."""

    FILENAME_SUFFIX = ".json"
    SESSIONS_DIR = Path.home() / ".streamchat" / "sessions"

    def __init__(
        self,
        name: str,
        model: str,
        messages: Optional[List[Dict[str, Any]]] = None,
        include_time: bool = False,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self.name = name
        self.model = model
        self.include_time = include_time
        self.conversation = Conversation.from_dicts(system_prompt, messages or [])

    @staticmethod
    def valid_name(name: str) -> bool:
        """Session names are plain file stems: no separators, no leading dot."""
        return bool(name) and not name.startswith(".") and "/" not in name and "\\" not in name

    @classmethod
    def _path_for(cls, name: str) -> Path:
        if not cls.valid_name(name):
            raise ValueError(f"Invalid session name: {name!r}")
        return cls.SESSIONS_DIR / f"{name}{cls.FILENAME_SUFFIX}"

    @property
    def path(self) -> Path:
        return self._path_for(self.name)

    @property
    def messages(self) -> List[Dict[str, str]]:
        return self.conversation.to_payload()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Write the session to disk. Raises :class:`OSError` on failure."""
        data = {
            "model": self.model,
            "messages": self.messages,
            "include_time": self.include_time,
            "updated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }
        self.SESSIONS_DIR.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def persist(self) -> bool:
        """Best-effort save after a mutation.

        Failures are logged and reported through the return value; the
        in-memory conversation is never rolled back.
        """
        try:
            self.save()
        except OSError as exc:
            logger.error("Failed to save session %r to %s: %s", self.name, self.path, exc)
            return False
        return True

    @classmethod
    def load(cls, name: str, system_prompt: str = SYSTEM_PROMPT) -> "Session":
        path = cls._path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"Session '{name}' does not exist.")
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Malformed session file {path}: expected a JSON object")
        messages = data.get("messages", [])
        if not isinstance(messages, list):
            raise ValueError(f"Malformed session file {path}: 'messages' must be a list")
        model = data.get("model")
        return cls(
            name=name,
            model=model if isinstance(model, str) and model else "gpt-4o-mini",
            messages=messages,
            include_time=bool(data.get("include_time", False)),
            system_prompt=system_prompt,
        )

    @classmethod
    def list_names(cls) -> List[str]:
        if not cls.SESSIONS_DIR.exists():
            return []
        return sorted(f.stem for f in cls.SESSIONS_DIR.glob(f"*{cls.FILENAME_SUFFIX}"))

    @classmethod
    def updated_at(cls, name: str) -> str:
        path = cls._path_for(name)
        return datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")

    @classmethod
    def delete(cls, name: str) -> None:
        path = cls._path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"Session '{name}' does not exist.")
        path.unlink()

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def export_markdown(self, path: Optional[Path] = None) -> Path:
        """Write the user/assistant turns as a Markdown transcript."""
        target = path or Path(f"chat-{int(time.time() * 1000)}.md")
        header = f"# Chat Transcript ({datetime.now().astimezone().isoformat()})\nModel: {self.model}\n\n"
        body = "\n\n".join(
            f"**{m.role.upper()}**: {m.content}" for m in self.conversation.turns()
        )
        target.write_text(header + body, encoding="utf-8")
        logger.info("Transcript of %r written to %s", self.name, target)
        return target

    def export_last_reply(self, path: Path) -> Optional[Path]:
        """Write the most recent non-empty assistant reply to *path*."""
        text = self.conversation.last_assistant_text()
        if not text:
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
