"""Desktop automation backends for poof.

Public API:
    TerminalDriver -- Abstract base class
    AppleScriptDriver -- Terminal.app via osascript / screencapture
"""

from poof.automation.base import TerminalDriver

__all__ = ["TerminalDriver", "AppleScriptDriver"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "AppleScriptDriver":
        from poof.automation.applescript import AppleScriptDriver
        return AppleScriptDriver
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
