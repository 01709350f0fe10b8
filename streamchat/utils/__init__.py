from .ansi import (
    Ansi,
    USER_LABEL,
    ASSISTANT_LABEL,
    ERROR_LABEL,
    WARNING_LABEL,
    PROMPT_LABEL,
    COMPOSE_LABEL,
    console,
)
from .log import configure_logging
from .paste import PasteGuard
from .render import ConsoleSink
from .spinner import Spinner

__all__ = [
    "Ansi",
    "USER_LABEL",
    "ASSISTANT_LABEL",
    "ERROR_LABEL",
    "WARNING_LABEL",
    "PROMPT_LABEL",
    "COMPOSE_LABEL",
    "console",
    "configure_logging",
    "PasteGuard",
    "ConsoleSink",
    "Spinner",
]
