"""Streaming terminal chat for OpenAI models.

Replies are printed token by token as they arrive. The conversation is
saved after every change and can be resumed with --session NAME.

Commands (enter them as a line at the prompt):

    /help                 show this help
    /exit, /quit          save the session and quit
    /model [name]         switch model (picker when no name is given)
    /models               list known models
    /sys [text]           show or replace the system prompt (clears context)
    /preset [name]        use a named preset as the system prompt (clears context)
    /presets              list presets (~/.streamchat/presets.json adds more)
    /clear                clear the context, keep the system prompt
    /multi                start a multi-line message
    /end                  send the multi-line message
    /cancel               discard the multi-line message
    /save [file]          save the transcript as Markdown (default: chat-<ms>.md)
    /clip [file]          save the last reply (default: ~/.streamchat/clip.txt)
    /time on|off          send the current local time with each request
    /list                 list saved sessions
    /new NAME             start a new session
    /switch [name]        switch to a saved session
    /delete [name]        delete a saved session

Ctrl+C while a reply is streaming stops it; the partial reply is kept.

Environment variables: OPENAI_API_KEY (required), OPENAI_BASE_URL,
STREAMCHAT_MODEL, STREAMCHAT_HOME, STREAMCHAT_PASTE_GUARD_MS,
STREAMCHAT_INCLUDE_TIME. A .env file in the working directory is read too.
"""
# Re-export useful symbols for convenience
from .core import (
    Conversation,
    Message,
    PresetStore,
    Session,
    StreamCoordinator,
    KNOWN_MODELS,
    SYSTEM_PROMPT,
)
from .cli import ChatCLI, run_cli

__all__ = [
    "Conversation",
    "Message",
    "PresetStore",
    "Session",
    "StreamCoordinator",
    "KNOWN_MODELS",
    "SYSTEM_PROMPT",
    "ChatCLI",
    "run_cli",
]
