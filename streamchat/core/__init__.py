from .conversation import Conversation, Message
from .errors import (
    InvalidTransition,
    StreamCancelled,
    StreamChatError,
    TransportError,
    ValidationError,
)
from .input_state import InputMode, InputStateMachine
from .presets import PresetStore, SYSTEM_PROMPT
from .session import Session, KNOWN_MODELS
from .stream import StreamCoordinator, StreamSession, StreamState
# client module will be imported lazily to avoid heavy dependencies when not needed.

__all__ = [
    "Conversation",
    "Message",
    "InvalidTransition",
    "StreamCancelled",
    "StreamChatError",
    "TransportError",
    "ValidationError",
    "InputMode",
    "InputStateMachine",
    "PresetStore",
    "SYSTEM_PROMPT",
    "Session",
    "KNOWN_MODELS",
    "StreamCoordinator",
    "StreamSession",
    "StreamState",
]
