"""Error taxonomy shared by the drivers, the manager and the MCP layer.

Drivers classify low-level failures into these types at their boundary.
The manager only adds context; the server renders them as tool errors.
"""

from __future__ import annotations


class PoofError(Exception):
    """Base class for all poof failures surfaced to the caller."""


class UnknownKeyError(PoofError):
    """Raised when a key name cannot be encoded.

    ``delivered`` is the number of keys from the same request that were
    already sent before the unknown one was reached.
    """

    def __init__(self, key: str, delivered: int = 0) -> None:
        super().__init__(f"Unknown key: {key}")
        self.key = key
        self.delivered = delivered


class NoWindowError(PoofError):
    """Raised when an operation needs a terminal window and none exists."""


class WindowNotFoundError(PoofError):
    """Raised when no capturable window id can be resolved."""


class PermissionDeniedError(PoofError):
    """Raised when macOS has not granted a required permission.

    The message is the remediation guidance shown to the caller.
    """

    def __init__(self, remediation: str, detail: str = "") -> None:
        super().__init__(remediation)
        self.remediation = remediation
        self.detail = detail


class RegistryError(PoofError):
    """Raised when the session manager reports a failure."""

    def __init__(self, message: str, command: str = "") -> None:
        super().__init__(message)
        self.command = command


class AutomationError(PoofError):
    """Raised for scripting-layer failures not otherwise classified."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr
