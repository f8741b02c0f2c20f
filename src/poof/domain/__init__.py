"""Domain models and errors for poof.

This package contains the core data structures, enumerations and the
error taxonomy used throughout the system. All models use Pydantic v2
for validation and serialization.
"""

from poof.domain.errors import (
    AutomationError,
    NoWindowError,
    PermissionDeniedError,
    PoofError,
    RegistryError,
    UnknownKeyError,
    WindowNotFoundError,
)
from poof.domain.models import (
    CharacterPress,
    CreatedSession,
    KeyCodePress,
    KeyEvent,
    ManagerState,
    Modifier,
    Screenshot,
    Session,
    SessionStatus,
    StableWaitResult,
    TextInjection,
    TextWaitResult,
    WindowHandle,
)

__all__ = [
    "AutomationError",
    "CharacterPress",
    "CreatedSession",
    "KeyCodePress",
    "KeyEvent",
    "ManagerState",
    "Modifier",
    "NoWindowError",
    "PermissionDeniedError",
    "PoofError",
    "RegistryError",
    "Screenshot",
    "Session",
    "SessionStatus",
    "StableWaitResult",
    "TextInjection",
    "TextWaitResult",
    "UnknownKeyError",
    "WindowHandle",
    "WindowNotFoundError",
]
