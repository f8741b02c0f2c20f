"""Key encoding for poof.

Translates logical key names ("enter", "ctrl+c", "a") into the key
events the automation driver delivers to Terminal.app.

Public API:
    encode -- Resolve a key name to a KeyEvent
    KEY_CODES -- Named key table (macOS virtual key codes)
    MODIFIER_MAP -- Modifier aliases
"""

from poof.keyboard.keycodes import KEY_CODES, MODIFIER_MAP, encode

__all__ = ["KEY_CODES", "MODIFIER_MAP", "encode"]
