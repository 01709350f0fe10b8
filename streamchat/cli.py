"""Terminal chat REPL that streams replies from OpenAI chat models.

Lines typed at the prompt are parsed into commands once, then dispatched
by type. Sending a message goes through the input state machine's busy gate
so only one streaming exchange is ever in flight.
"""
from __future__ import annotations

import argparse
import logging
import sys
import threading
import readline  # noqa: F401 – side-effect: history & line editing
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import questionary
from rich.markup import escape
from rich.panel import Panel

from .core import (
    KNOWN_MODELS,
    SYSTEM_PROMPT,
    InputStateMachine,
    Message,
    PresetStore,
    Session,
    StreamCancelled,
    StreamCoordinator,
    TransportError,
    ValidationError,
)
from .core import commands as cmds
from .core.conversation import SYSTEM
from .utils import (
    Ansi,
    COMPOSE_LABEL,
    ERROR_LABEL,
    PROMPT_LABEL,
    USER_LABEL,
    WARNING_LABEL,
    ConsoleSink,
    PasteGuard,
    configure_logging,
    console,
)

logger = logging.getLogger(__name__)


def current_time_hint(now: Optional[datetime] = None) -> str:
    """Describe the local time for the model; sent with the request only."""
    now = now or datetime.now().astimezone()
    human = now.strftime("%A, %B %d, %Y %H:%M:%S %Z").strip()
    return f"Current local time: {human} ({now.isoformat()})"


# ---------------------------------------------------------------------------
# Helper classes
# ---------------------------------------------------------------------------


class ChatCLI:
    """High-level orchestration class for the interactive REPL."""

    def __init__(
        self,
        initial_session: Session,
        coordinator: StreamCoordinator,
        *,
        presets: Optional[PresetStore] = None,
        sink: Optional[ConsoleSink] = None,
        paste_guard: Optional[PasteGuard] = None,
        clip_path: Optional[Path] = None,
    ):
        self.session = initial_session
        self.coordinator = coordinator
        self.presets = presets or PresetStore()
        self.sink = sink or ConsoleSink()
        self.paste_guard = paste_guard or PasteGuard(0)
        self.clip_path = clip_path or Path.home() / ".streamchat" / "clip.txt"
        self.state = InputStateMachine()
        self._cancel_event: Optional[threading.Event] = None
        self._handlers: Dict[type, Callable[..., bool]] = {
            cmds.SendText: self._on_send_text,
            cmds.Help: self._on_help,
            cmds.Exit: self._on_exit,
            cmds.SetModel: self._on_set_model,
            cmds.ListModels: self._on_list_models,
            cmds.SetSystem: self._on_set_system,
            cmds.ApplyPreset: self._on_apply_preset,
            cmds.ListPresets: self._on_list_presets,
            cmds.Clear: self._on_clear,
            cmds.BeginMultiline: self._on_begin_multiline,
            cmds.EndMultiline: self._on_end_multiline,
            cmds.CancelMultiline: self._on_cancel_multiline,
            cmds.SaveTranscript: self._on_save_transcript,
            cmds.SaveClip: self._on_save_clip,
            cmds.SetTimeHint: self._on_set_time_hint,
            cmds.ListSessions: self._on_list_sessions,
            cmds.NewSession: self._on_new_session,
            cmds.SwitchSession: self._on_switch_session,
            cmds.DeleteSession: self._on_delete_session,
            cmds.BadUsage: self._on_bad_usage,
            cmds.Unknown: self._on_unknown,
        }

    # ---------------- Utility ----------------

    @staticmethod
    def notice(text: str) -> None:
        console.print(Ansi.dim(escape(text)))

    @staticmethod
    def error(text: str) -> None:
        console.print(f"[{ERROR_LABEL}] {escape(text)}")

    def _persist(self) -> None:
        if not self.session.persist():
            console.print(f"[{WARNING_LABEL}] Could not save session '{escape(self.session.name)}' (see log).")

    # -------------- Interactive pickers ---------------

    @staticmethod
    def _interactive_picker(
        title: str, options: List[str], current: Optional[str] = None
    ) -> Optional[str]:
        """Present *options* to the user and return the selected value."""
        if not options:
            console.print("(no items available)")
            return None
        try:
            return questionary.select(
                title,
                choices=options,
                default=current if current in options else None,
            ).ask()
        except (KeyboardInterrupt, EOFError):
            console.print()
            return None

    # ---------------- Sending ---------------

    def _commit_reply(self, full_text: str) -> None:
        # Fires exactly once per exchange, including failures and cancellation.
        self.session.conversation.add_assistant(full_text)
        self._persist()
        self.sink.on_done(full_text)

    def _build_payload(self) -> List[Message]:
        payload = list(self.session.conversation.snapshot())
        if self.session.include_time:
            payload.append(Message(SYSTEM, current_time_hint()))
        return payload

    def submit(self, text: str) -> bool:
        """Send *text* as a user turn and stream the reply.

        Returns False without touching the conversation when the text is
        blank or another exchange is still in flight.
        """
        text = self.state.accept_line(text)
        if text is None:
            return False
        if not self.session.model.strip():
            self.error("No model selected. Use /model <name>.")
            return False
        if not self.state.begin_exchange():
            return False

        self._cancel_event = threading.Event()
        try:
            self.session.conversation.add_user(text)
            self._persist()
            logger.info("Exchange started: session=%s model=%s", self.session.name, self.session.model)
            self.coordinator.run_exchange(
                self.session.model,
                self._build_payload(),
                on_start=self.sink.on_start,
                on_delta=self.sink.on_delta,
                on_done=self._commit_reply,
                cancel_event=self._cancel_event,
            )
        except StreamCancelled:
            self.notice("[interrupted]")
        except TransportError as exc:
            cause = exc.cause if exc.cause is not None else exc
            self.error(f"OpenAI API error: {cause}")
        except ValidationError as exc:
            self.error(str(exc))
        finally:
            self._cancel_event = None
            self.state.finish_exchange()
        return True

    # ---------------- Command handling ---------------

    def handle_line(self, line: str) -> bool:
        """Parse and dispatch one input line. Return False to exit the REPL."""
        command = cmds.parse_command(line, composing=self.state.composing)
        if self.state.busy and not isinstance(command, (cmds.Exit, cmds.Help)):
            logger.debug("Ignoring %s while an exchange is in flight", type(command).__name__)
            return True
        return self._handlers[type(command)](command)

    def _on_send_text(self, command: cmds.SendText) -> bool:
        if self.state.composing:
            self.state.add_line(command.text)
        else:
            self.submit(command.text)
        return True

    def _on_help(self, command: cmds.Help) -> bool:
        from . import __doc__ as _doc  # lazy import to avoid circularity

        console.print(_doc or "(no help available)", markup=False, highlight=False)
        return True

    def _on_exit(self, command: cmds.Exit) -> bool:
        # The REPL blocks on the stream, so a busy /exit only arrives from a
        # sink callback or another thread. Interactively, Ctrl+C cancels.
        if self._cancel_event is not None:
            self._cancel_event.set()
        self.state.quit()
        self._persist()
        console.print("Session saved. Bye!")
        return False

    def _on_set_model(self, command: cmds.SetModel) -> bool:
        name = command.name
        if name is None:
            options = list(KNOWN_MODELS)
            if self.session.model not in options:
                options.insert(0, self.session.model)
            name = self._interactive_picker("Select a model:", options, current=self.session.model)
            if not name:
                return True
        self.session.model = name
        self._persist()
        self.notice(f"Model switched to {self.session.model}")
        return True

    def _on_list_models(self, command: cmds.ListModels) -> bool:
        console.print("Known models (any other name is accepted too):")
        for m in KNOWN_MODELS:
            marker = " <- current" if m == self.session.model else ""
            console.print(f"  {m}{marker}")
        if self.session.model not in KNOWN_MODELS:
            console.print(f"  {escape(self.session.model)} <- current")
        return True

    def _on_set_system(self, command: cmds.SetSystem) -> bool:
        if command.text is None:
            self.notice(f'Current system prompt: "{self.session.conversation.system_prompt}"')
            return True
        self.session.conversation.reset(command.text)
        self._persist()
        self.notice("System prompt updated; context cleared.")
        return True

    def _on_apply_preset(self, command: cmds.ApplyPreset) -> bool:
        name = command.name
        if name is None:
            name = self._interactive_picker("Apply preset:", self.presets.names())
            if not name:
                return True
        prompt = self.presets.get(name)
        if prompt is None:
            self.error(f"Unknown preset '{name}'. Use /presets to list them.")
            return True
        self.session.conversation.reset(prompt)
        self._persist()
        self.notice(f"Preset '{name}' applied; context cleared.")
        return True

    def _on_list_presets(self, command: cmds.ListPresets) -> bool:
        current = self.session.conversation.system_prompt
        console.print("Presets:")
        for name in self.presets.names():
            marker = " <- current" if self.presets.get(name) == current else ""
            console.print(f"  {Ansi.plain(name, Ansi.NAME)}{marker}")
        return True

    def _on_clear(self, command: cmds.Clear) -> bool:
        self.session.conversation.reset()
        self._persist()
        self.notice("Context cleared.")
        return True

    def _on_begin_multiline(self, command: cmds.BeginMultiline) -> bool:
        self.state.begin_compose()
        self.notice("Multi-line mode: /end to send, /cancel to discard.")
        return True

    def _on_end_multiline(self, command: cmds.EndMultiline) -> bool:
        if not self.state.composing:
            self.notice("Not composing a multi-line message (start with /multi).")
            return True
        text = self.state.end_compose()
        if text is None:
            self.notice("Empty message discarded.")
            return True
        self.submit(text)
        return True

    def _on_cancel_multiline(self, command: cmds.CancelMultiline) -> bool:
        if not self.state.composing:
            self.notice("Nothing to cancel.")
            return True
        self.state.cancel_compose()
        self.notice("Multi-line message discarded.")
        return True

    def _on_save_transcript(self, command: cmds.SaveTranscript) -> bool:
        target = Path(command.path).expanduser() if command.path else None
        try:
            written = self.session.export_markdown(target)
        except OSError as exc:
            self.error(f"Failed to save transcript: {exc}")
            return True
        self.notice(f"Saved to {written}")
        return True

    def _on_save_clip(self, command: cmds.SaveClip) -> bool:
        target = Path(command.path).expanduser() if command.path else self.clip_path
        try:
            written = self.session.export_last_reply(target)
        except OSError as exc:
            self.error(f"Failed to save reply: {exc}")
            return True
        if written is None:
            self.notice("No assistant reply to save yet.")
        else:
            self.notice(f"Saved last reply to {written}")
        return True

    def _on_set_time_hint(self, command: cmds.SetTimeHint) -> bool:
        self.session.include_time = command.enabled
        self._persist()
        self.notice(f"Time hint {'enabled' if command.enabled else 'disabled'}")
        return True

    def _on_list_sessions(self, command: cmds.ListSessions) -> bool:
        names = Session.list_names()
        if not names:
            console.print("(no saved sessions)")
            return True
        console.print(Ansi.style("Saved sessions:", Ansi.HEADING))
        for name in names:
            current = name == self.session.name
            indicator_char = "★" if current else " "
            label = Ansi.plain(name, Ansi.CURRENT if current else Ansi.NAME)
            console.print(f"  {indicator_char} {label} (updated: {Session.updated_at(name)})")
        return True

    def _on_new_session(self, command: cmds.NewSession) -> bool:
        self._persist()
        self.session = Session(
            name=command.name,
            model=self.session.model,
            include_time=self.session.include_time,
        )
        self._persist()
        self.notice(f"New session '{self.session.name}' started")
        return True

    def _on_switch_session(self, command: cmds.SwitchSession) -> bool:
        name = command.name
        if name is None:
            others = [n for n in Session.list_names() if n != self.session.name]
            name = self._interactive_picker("Switch to session:", others, current=self.session.name)
            if not name:
                return True
        try:
            loaded = Session.load(name)
        except FileNotFoundError as exc:
            console.print(escape(str(exc)))
            return True
        except ValueError as exc:
            self.error(f"Session '{name}' is unreadable: {exc}")
            return True
        self._persist()
        self.session = loaded
        self.notice(f"Switched to session '{self.session.name}' (model={self.session.model})")
        return True

    def _on_delete_session(self, command: cmds.DeleteSession) -> bool:
        target = command.name
        if target is None:
            others = [n for n in Session.list_names() if n != self.session.name]
            target = self._interactive_picker("Delete session:", others)
            if not target:
                return True

        if target == self.session.name:
            console.print(
                Ansi.style(
                    "Cannot delete the session you are currently using. Switch to another session first.",
                    Ansi.ERROR,
                )
            )
            return True

        try:
            Session.delete(target)
        except FileNotFoundError:
            console.print(f"Session '{escape(target)}' does not exist.")
            return True
        except (OSError, ValueError) as exc:
            console.print(Ansi.plain(f"Failed to delete session '{target}': {exc}", Ansi.ERROR))
            return True
        self.notice(f"Session '{target}' deleted")
        return True

    def _on_bad_usage(self, command: cmds.BadUsage) -> bool:
        console.print(escape(command.usage))
        return True

    def _on_unknown(self, command: cmds.Unknown) -> bool:
        console.print(Ansi.plain(f"Unknown command: {command.name} (see /help)", Ansi.ERROR))
        return True

    # ---------------- Interaction loop ---------------

    def _prompt(self) -> str:
        return f"{COMPOSE_LABEL} " if self.state.composing else f"{USER_LABEL}{PROMPT_LABEL} "

    def repl(self) -> None:
        """Run the interactive read–eval–print-loop."""
        console.print(Panel.fit("Streaming Chat CLI", style=Ansi.HEADING))

        console.print(
            Ansi.style("Type your message and press Enter. Commands start with '/'.", Ansi.INTRO),
            Ansi.plain(f"Current model: {self.session.model}.", Ansi.INTRO),
            Ansi.style("Type /help for help.", Ansi.INTRO),
            sep="\n",
        )

        while not self.state.finished:
            try:
                line = console.input(self._prompt())
            except (EOFError, KeyboardInterrupt):
                console.print()
                self.notice("[signal caught – exiting]")
                self.state.quit()
                self._persist()
                break

            if not self.state.composing:
                line = self.paste_guard.collect(line)
                if "\n" in line:
                    # A pasted block is one message even if it starts with '/'.
                    self.submit(line)
                    continue

            if not self.handle_line(line):
                break


# ---------------------------------------------------------------------------
# Entrypoint helpers (keeping it separate simplifies __main__ handling)
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:  # pragma: no cover
    parser = argparse.ArgumentParser(
        description="Interactive streaming CLI for OpenAI chat models."
    )
    parser.add_argument("--session", "-s", help="Session name (default: 'default')", default="default")
    parser.add_argument("--model", "-m", help="Model name to use (overrides saved value)")
    parser.add_argument("--preset", "-p", help="Preset to use as the system prompt")
    parser.add_argument("--debug", action="store_true", help="Write debug output to the log file")
    return parser.parse_args(argv)


def run_cli(argv: Optional[List[str]] = None) -> None:  # pragma: no cover
    from .core.client import OpenAIStreamTransport, build_openai_client
    from .core.config import load_settings

    args = _parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_path, debug=args.debug)

    if not settings.api_key:
        sys.stderr.write(
            "Error: OPENAI_API_KEY environment variable is not set.\n"
            "(Tried the environment, .env and ~/.zshrc)\n"
        )
        sys.exit(1)

    Session.SESSIONS_DIR = settings.sessions_dir
    presets = PresetStore.load(settings.presets_path)

    # ------------------------------------------------------------------
    # Load or create session
    # ------------------------------------------------------------------
    try:
        session = Session.load(args.session)
        if args.model:
            session.model = args.model
    except FileNotFoundError:
        session = Session(
            name=args.session,
            model=args.model or settings.model,
            include_time=settings.include_time,
            system_prompt=SYSTEM_PROMPT,
        )
    except ValueError as exc:
        sys.stderr.write(f"Error: session '{args.session}' is unreadable: {exc}\n")
        sys.exit(1)

    if args.preset:
        prompt = presets.get(args.preset)
        if prompt is None:
            sys.stderr.write(f"Error: unknown preset '{args.preset}'. Known: {', '.join(presets.names())}\n")
            sys.exit(1)
        session.conversation.append(Message(SYSTEM, prompt))

    logger.info("Starting session %r with model %s", session.name, session.model)

    transport = OpenAIStreamTransport(build_openai_client(settings))
    ChatCLI(
        session,
        StreamCoordinator(transport),
        presets=presets,
        paste_guard=PasteGuard(settings.paste_guard_ms),
        clip_path=settings.clip_path,
    ).repl()


if __name__ == "__main__":  # pragma: no cover
    run_cli()
