"""Core domain models for the poof system.

These models represent the data flowing between the manager and its
collaborators: sessions reported by the registry, encoded key events
handed to the automation driver, and the results returned to callers.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Terminal.app window id; only valid until that window closes.
WindowHandle = int


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Modifier(str, enum.Enum):
    """Modifier keys, valued by their AppleScript ``using ... down`` name."""

    CONTROL = "control"
    OPTION = "option"
    SHIFT = "shift"
    COMMAND = "command"


# ---------------------------------------------------------------------------
# Session Models
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """A named session as reported by the session registry.

    ``pid`` and ``clients`` are None when the registry did not report
    them, never zero.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique session name")
    pid: int | None = Field(default=None, description="Controlling process id, once attached")
    clients: int | None = Field(default=None, description="Number of attached viewers")


class ManagerState(BaseModel):
    """The single current session and its cached window handle."""

    session_name: str | None = None
    window_id: WindowHandle | None = None

    def clear(self) -> None:
        self.session_name = None
        self.window_id = None


# ---------------------------------------------------------------------------
# Key Event Models (discriminated union)
# ---------------------------------------------------------------------------


class KeyCodePress(BaseModel):
    """A virtual key code, optionally with one modifier held."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["key_code"] = "key_code"
    key_code: int = Field(ge=0, description="macOS virtual key code")
    modifier: Modifier | None = None


class CharacterPress(BaseModel):
    """A literal character keystroke with one modifier held (e.g. ctrl+c)."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["character"] = "character"
    character: str = Field(min_length=1, max_length=1)
    modifier: Modifier


class TextInjection(BaseModel):
    """Literal text typed into the terminal."""

    model_config = ConfigDict(frozen=True)

    event_type: Literal["text"] = "text"
    text: str


KeyEvent = Annotated[
    Union[KeyCodePress, CharacterPress, TextInjection],
    Field(discriminator="event_type"),
]


# ---------------------------------------------------------------------------
# Result Models
# ---------------------------------------------------------------------------


class CreatedSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_name: str
    window_id: WindowHandle


class Screenshot(BaseModel):
    """An encoded image of the terminal window."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(description="Encoded image bytes")
    mime_type: str = Field(default="image/png")

    @property
    def format(self) -> str:
        """Image format name, e.g. ``png`` or ``jpeg``."""
        return self.mime_type.split("/", 1)[-1]


class SessionStatus(BaseModel):
    """Snapshot of the manager's belief plus registry ground truth."""

    session_name: str | None
    is_active: bool
    window_id: WindowHandle | None
    sessions: list[Session] = Field(default_factory=list)


class TextWaitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    found: bool
    elapsed_ms: int = Field(ge=0)


class StableWaitResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    stable: bool
    elapsed_ms: int = Field(ge=0)
