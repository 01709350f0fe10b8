"""Named system-prompt presets."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant. Answer briefly unless asked for details."

BUILTIN_PRESETS: Dict[str, str] = {
    "default": SYSTEM_PROMPT,
    "concise": (
        "You are a terse assistant running in a terminal. Reply in as few "
        "words as possible; use plain text and short bullet lists."
    ),
    "coder": (
        "You are a senior software engineer. Prefer working code over prose, "
        "wrap code in fenced blocks and point out edge cases briefly."
    ),
    "translator": (
        "You are a translator. Translate the user's message into English if "
        "it is not English, otherwise into Korean. Output only the translation."
    ),
}


class PresetStore:
    """Read-only mapping from preset name to system prompt text."""

    def __init__(self, presets: Optional[Dict[str, str]] = None) -> None:
        self._presets: Dict[str, str] = dict(BUILTIN_PRESETS)
        if presets:
            self._presets.update(presets)

    @classmethod
    def load(cls, path: Path) -> "PresetStore":
        """Merge user presets from *path* (a JSON object) over the built-ins.

        A missing file is normal. A malformed one is logged and ignored.
        """
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable presets file %s: %s", path, exc)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Ignoring presets file %s: expected a JSON object", path)
            return cls()

        presets = {}
        for name, prompt in data.items():
            if isinstance(prompt, str) and prompt.strip():
                presets[str(name)] = prompt
            else:
                logger.warning("Skipping preset %r in %s: prompt must be non-empty text", name, path)
        logger.info("Loaded %d preset(s) from %s", len(presets), path)
        return cls(presets)

    def names(self) -> List[str]:
        return sorted(self._presets)

    def get(self, name: str) -> Optional[str]:
        return self._presets.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._presets

    def __len__(self) -> int:
        return len(self._presets)
