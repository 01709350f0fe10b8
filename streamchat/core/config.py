"""Runtime settings resolved from the environment and ``.env`` files."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_PASTE_GUARD_MS = 60

# Checked in order; the first non-empty value wins.
API_KEY_VARS = ("OPENAI_API_KEY", "OPENAI_KEY", "OPENAI_APIKEY")

_ZSHRC_KEY_PATTERN = re.compile(r"(?:export\s+)?OPENAI_API_KEY\s*=\s*['\"]?([^'\"\n]+)['\"]?")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    api_key: Optional[str]
    base_url: Optional[str]
    model: str
    home: Path
    paste_guard_ms: int = DEFAULT_PASTE_GUARD_MS
    include_time: bool = False

    @property
    def presets_path(self) -> Path:
        return self.home / "presets.json"

    @property
    def sessions_dir(self) -> Path:
        return self.home / "sessions"

    @property
    def clip_path(self) -> Path:
        return self.home / "clip.txt"

    @property
    def log_path(self) -> Path:
        return self.home / "streamchat.log"


def _api_key_from_zshrc(zshrc_path: Path) -> Optional[str]:
    """Fallback for shells that export the key only in ``~/.zshrc``."""
    if not zshrc_path.exists():
        return None
    try:
        match = _ZSHRC_KEY_PATTERN.search(zshrc_path.read_text())
    except OSError as exc:
        logger.warning("Could not read %s: %s", zshrc_path, exc)
        return None
    return match.group(1).strip() if match else None


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    *,
    dotenv: bool = True,
    zshrc_path: Optional[Path] = None,
) -> Settings:
    """Resolve settings.

    ``.env`` in the working directory is loaded first (without overriding
    variables already set) unless *dotenv* is false.
    """
    if dotenv:
        load_dotenv()
    if env is None:
        env = os.environ

    api_key = next((env[name] for name in API_KEY_VARS if env.get(name)), None)
    if not api_key:
        api_key = _api_key_from_zshrc(zshrc_path or Path.home() / ".zshrc")

    home = Path(env.get("STREAMCHAT_HOME") or Path.home() / ".streamchat").expanduser()

    return Settings(
        api_key=api_key,
        base_url=env.get("OPENAI_BASE_URL") or None,
        model=env.get("STREAMCHAT_MODEL") or env.get("MODEL") or DEFAULT_MODEL,
        home=home,
        paste_guard_ms=_int_env(env, "STREAMCHAT_PASTE_GUARD_MS", DEFAULT_PASTE_GUARD_MS),
        include_time=env.get("STREAMCHAT_INCLUDE_TIME", "").strip().lower() in _TRUTHY,
    )
