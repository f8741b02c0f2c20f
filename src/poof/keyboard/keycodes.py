"""macOS virtual key codes and the key-name encoder.

Reference: Carbon ``Events.h`` (kVK_* constants), ANSI layout.

Key names are case-insensitive. Three shapes are accepted:

- a named key from ``KEY_CODES`` (``"enter"``, ``"f5"``, ``"pageup"``)
- ``modifier+key`` with exactly one modifier (``"ctrl+c"``, ``"shift+tab"``)
- a bare single character, which is typed literally
"""

from __future__ import annotations

from poof.domain.errors import UnknownKeyError
from poof.domain.models import CharacterPress, KeyCodePress, KeyEvent, Modifier, TextInjection

# ---------------------------------------------------------------------------
# Modifier names -> AppleScript modifier
# ---------------------------------------------------------------------------

MODIFIER_MAP: dict[str, Modifier] = {
    "ctrl": Modifier.CONTROL,
    "control": Modifier.CONTROL,
    "alt": Modifier.OPTION,
    "option": Modifier.OPTION,
    "shift": Modifier.SHIFT,
    "cmd": Modifier.COMMAND,
    "command": Modifier.COMMAND,
}

# ---------------------------------------------------------------------------
# Key name -> macOS virtual key code
# ---------------------------------------------------------------------------

KEY_CODES: dict[str, int] = {
    # Control keys
    "enter": 36, "return": 36,
    "tab": 48,
    "escape": 53, "esc": 53,
    "space": 49,
    "delete": 51, "backspace": 51,
    # Arrows
    "up": 126, "down": 125,
    "left": 123, "right": 124,
    # Navigation
    "home": 115, "end": 119,
    "pageup": 116, "pagedown": 121,
    # Function keys
    "f1": 122, "f2": 120, "f3": 99, "f4": 118,
    "f5": 96, "f6": 97, "f7": 98, "f8": 100,
    "f9": 101, "f10": 109, "f11": 103, "f12": 111,
}


def encode(key: str) -> KeyEvent:
    """Resolve a logical key name to exactly one key event.

    Raises:
        UnknownKeyError: If the name is not a named key, a single-modifier
            combination, or a single character.
    """
    lowered = key.lower()
    if lowered in KEY_CODES:
        return KeyCodePress(key_code=KEY_CODES[lowered])
    if len(key) == 1:
        return TextInjection(text=key)
    if "+" in key:
        return _encode_combo(key)
    raise UnknownKeyError(key)


def _encode_combo(key: str) -> KeyEvent:
    """Encode ``modifier+key``; the key part may itself be ``+``."""
    modifier_name, _, main_key = key.lower().partition("+")
    modifier = MODIFIER_MAP.get(modifier_name)
    if modifier is None:
        raise UnknownKeyError(key)
    if main_key in KEY_CODES:
        return KeyCodePress(key_code=KEY_CODES[main_key], modifier=modifier)
    if len(main_key) == 1:
        return CharacterPress(character=main_key, modifier=modifier)
    raise UnknownKeyError(key)
