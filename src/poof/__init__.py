"""poof -- AI-controllable terminal sessions over MCP.

This package lets an automated caller drive a visible Terminal.app
window attached to a persistent zmx session: create sessions, inject
keystrokes and text, read or screenshot the rendered terminal, and
wait until the screen satisfies a condition.
"""

__version__ = "1.0.0"
