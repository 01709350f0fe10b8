"""Slash-command parsing.

Every typed line is resolved once into one of the command types below; the
REPL then dispatches on the type rather than re-inspecting the string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .session import Session


class Command:
    """Base class for all parsed input lines."""


@dataclass(frozen=True)
class SendText(Command):
    text: str


@dataclass(frozen=True)
class Help(Command):
    pass


@dataclass(frozen=True)
class Exit(Command):
    pass


@dataclass(frozen=True)
class SetModel(Command):
    name: Optional[str] = None


@dataclass(frozen=True)
class ListModels(Command):
    pass


@dataclass(frozen=True)
class SetSystem(Command):
    text: Optional[str] = None


@dataclass(frozen=True)
class ApplyPreset(Command):
    name: Optional[str] = None


@dataclass(frozen=True)
class ListPresets(Command):
    pass


@dataclass(frozen=True)
class Clear(Command):
    pass


@dataclass(frozen=True)
class BeginMultiline(Command):
    pass


@dataclass(frozen=True)
class EndMultiline(Command):
    pass


@dataclass(frozen=True)
class CancelMultiline(Command):
    pass


@dataclass(frozen=True)
class SaveTranscript(Command):
    path: Optional[str] = None


@dataclass(frozen=True)
class SaveClip(Command):
    path: Optional[str] = None


@dataclass(frozen=True)
class SetTimeHint(Command):
    enabled: bool


@dataclass(frozen=True)
class ListSessions(Command):
    pass


@dataclass(frozen=True)
class NewSession(Command):
    name: str


@dataclass(frozen=True)
class SwitchSession(Command):
    name: Optional[str] = None


@dataclass(frozen=True)
class DeleteSession(Command):
    name: Optional[str] = None


@dataclass(frozen=True)
class BadUsage(Command):
    usage: str


@dataclass(frozen=True)
class Unknown(Command):
    name: str


ALL_COMMANDS: Tuple[type, ...] = (
    SendText, Help, Exit, SetModel, ListModels, SetSystem, ApplyPreset,
    ListPresets, Clear, BeginMultiline, EndMultiline, CancelMultiline,
    SaveTranscript, SaveClip, SetTimeHint, ListSessions, NewSession,
    SwitchSession, DeleteSession, BadUsage, Unknown,
)

# Commands still recognised while a multi-line message is being composed.
COMPOSING_COMMANDS = {"/end": EndMultiline, "/cancel": CancelMultiline, "/exit": Exit, "/quit": Exit}


def _optional(arg: str) -> Optional[str]:
    return arg or None


def _single_word(cmd: str, arg: str, factory: Callable[[Optional[str]], Command], required: bool) -> Command:
    if not arg:
        return BadUsage(f"Usage: {cmd} <name>") if required else factory(None)
    if len(arg.split()) != 1:
        return BadUsage(f"Usage: {cmd} {'<name>' if required else '[name]'}")
    return factory(arg)


def _session_name(cmd: str, arg: str, factory: Callable[[Optional[str]], Command], required: bool) -> Command:
    if arg and not Session.valid_name(arg):
        return BadUsage(f"Invalid session name: {arg!r} (no path separators or leading dot)")
    return _single_word(cmd, arg, factory, required)


def _time_hint(arg: str) -> Command:
    if arg.lower() not in {"on", "off"}:
        return BadUsage("Usage: /time on|off")
    return SetTimeHint(enabled=arg.lower() == "on")


_PARSERS: Dict[str, Callable[[str], Command]] = {
    "/help": lambda arg: Help(),
    "/exit": lambda arg: Exit(),
    "/quit": lambda arg: Exit(),
    "/model": lambda arg: _single_word("/model", arg, SetModel, required=False),
    "/models": lambda arg: ListModels(),
    "/sys": lambda arg: SetSystem(_optional(arg)),
    "/system": lambda arg: SetSystem(_optional(arg)),
    "/preset": lambda arg: _single_word("/preset", arg, ApplyPreset, required=False),
    "/presets": lambda arg: ListPresets(),
    "/clear": lambda arg: Clear(),
    "/multi": lambda arg: BeginMultiline(),
    "/ml": lambda arg: BeginMultiline(),
    "/end": lambda arg: EndMultiline(),
    "/cancel": lambda arg: CancelMultiline(),
    "/save": lambda arg: SaveTranscript(_optional(arg)),
    "/clip": lambda arg: SaveClip(_optional(arg)),
    "/time": _time_hint,
    "/list": lambda arg: ListSessions(),
    "/new": lambda arg: _session_name("/new", arg, NewSession, required=True),
    "/switch": lambda arg: _session_name("/switch", arg, SwitchSession, required=False),
    "/delete": lambda arg: _session_name("/delete", arg, DeleteSession, required=False),
}


def parse_command(line: str, *, composing: bool = False) -> Command:
    """Resolve a raw input line into a :class:`Command`.

    While *composing*, only the commands in ``COMPOSING_COMMANDS`` are
    recognised; every other line (even one starting with ``/``) is text.
    """
    stripped = line.strip()
    if composing:
        factory = COMPOSING_COMMANDS.get(stripped.lower())
        return factory() if factory is not None else SendText(line)

    if not stripped.startswith("/"):
        return SendText(stripped)

    cmd, _, arg = stripped.partition(" ")
    cmd = cmd.lower()
    parser = _PARSERS.get(cmd)
    if parser is None:
        return Unknown(cmd)
    return parser(arg.strip())
