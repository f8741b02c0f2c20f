"""Abstract base class for desktop UI automation of the terminal.

All automation backends must conform to this interface so the terminal
manager can be driven against a real Terminal.app or an in-memory fake
without changing any orchestration code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from poof.domain.models import KeyEvent, Screenshot, WindowHandle

logger = logging.getLogger(__name__)


class TerminalDriver(ABC):
    """Abstract interface for scripting the terminal application.

    Every call is a bounded, synchronous round-trip to the OS automation
    layer. Key events and text go to whichever application has focus, so
    callers must ``activate()`` before injecting input.

    Implementations classify failures at their boundary:

    - PermissionDeniedError -- consent not granted, or a script that
      timed out waiting on a consent dialog
    - WindowNotFoundError -- no capturable window could be resolved
    - AutomationError -- anything else the scripting layer reported
    """

    @abstractmethod
    async def check_control_permission(self) -> None:
        """Verify the terminal application can be scripted at all.

        Does not require an open window.

        Raises:
            PermissionDeniedError: If the application cannot be addressed.
        """
        ...

    @abstractmethod
    async def open_window_running(self, command: str) -> WindowHandle:
        """Open a new terminal window running ``command``.

        Returns:
            The handle of the resulting front window.
        """
        ...

    @abstractmethod
    async def front_window_handle(self) -> WindowHandle | None:
        """Handle of the front window, or None when no window is open."""
        ...

    @abstractmethod
    async def activate(self) -> None:
        """Bring the terminal application to the foreground."""
        ...

    @abstractmethod
    async def read_front_window_text(self) -> str:
        """Visible text of the front window; empty when no window is open."""
        ...

    @abstractmethod
    async def send_key(self, event: KeyEvent) -> None:
        """Deliver one encoded key event to the focused terminal."""
        ...

    @abstractmethod
    async def type_text(self, text: str) -> None:
        """Type ``text`` literally into the focused terminal."""
        ...

    @abstractmethod
    async def resize_front_window(self, rows: int, cols: int) -> bool:
        """Resize the front window.

        Returns:
            False when there was no window to resize.
        """
        ...

    @abstractmethod
    async def close_front_window(self) -> bool:
        """Close the front window.

        Returns:
            False when there was no window to close.
        """
        ...

    @abstractmethod
    async def capture_window(self, handle: WindowHandle) -> Screenshot:
        """Capture an image of the window identified by ``handle``.

        Raises:
            WindowNotFoundError: If no capturable window id resolves.
            PermissionDeniedError: If screen recording is not granted.
        """
        ...
