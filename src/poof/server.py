"""FastMCP server exposing the terminal manager as MCP tools.

Each tool delegates to the TerminalManager and renders a short text
result. Failures from the poof error taxonomy become tool errors
(``isError`` results) carrying a human-readable message.
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.utilities.types import Image
from pydantic import Field

from poof import __version__
from poof.domain.errors import PoofError, UnknownKeyError
from poof.manager import DEFAULT_STABLE_MS, DEFAULT_TIMEOUT_MS, TerminalManager

logger = logging.getLogger(__name__)

INSTRUCTIONS = """AI-controllable terminal server using zmx sessions and AppleScript.

This server allows you to:
- Create and manage terminal sessions via zmx
- Open sessions in visible Terminal.app windows
- Send keystrokes and type text into the terminal
- Read terminal screen content
- Capture screenshots of Terminal windows
- Wait for text to appear or for the screen to settle

Use create_session to start a new terminal session, then interact with it using \
send_keystrokes, type_text, get_screen_text, and get_screenshot."""


@asynccontextmanager
async def _tool_errors(action: str) -> AsyncIterator[None]:
    """Render poof failures as tool errors prefixed with ``action``."""
    try:
        yield
    except UnknownKeyError as e:
        logger.warning("Error %s: %s", action, e)
        raise ToolError(f"Error {action}: {e} ({e.delivered} keystroke(s) sent before it)") from e
    except PoofError as e:
        logger.warning("Error %s: %s", action, e)
        raise ToolError(f"Error {action}: {e}") from e


def create_server(
    manager: TerminalManager,
    name: str = "poof-mcp",
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    default_stable_ms: int = DEFAULT_STABLE_MS,
) -> FastMCP:
    """Create the MCP server bound to ``manager``.

    The server lifespan closes the terminal window on shutdown.
    """

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        logger.info("%s %s ready", name, __version__)
        try:
            yield
        finally:
            try:
                await manager.close()
            except PoofError as e:
                logger.warning("Could not close terminal on shutdown: %s", e)
            logger.info("%s stopped", name)

    mcp = FastMCP(name=name, instructions=INSTRUCTIONS, version=__version__, lifespan=lifespan)

    @mcp.tool()
    async def send_keystrokes(
        keys: Annotated[
            list[str],
            Field(description="Keys to send. Examples: ['enter'], ['up', 'up', 'enter'], ['ctrl+c']"),
        ],
    ) -> str:
        """Send key presses (e.g., ['enter'], ['up', 'up', 'enter'])"""
        async with _tool_errors("sending keystrokes"):
            count = await manager.send_keys(keys)
        return f"Sent {count} keystroke(s)"

    @mcp.tool()
    async def type_text(
        text: Annotated[str, Field(description="Text to type into the terminal")],
    ) -> str:
        """Type a string"""
        async with _tool_errors("typing text"):
            count = await manager.type_text(text)
        return f"Typed {count} character(s)"

    @mcp.tool()
    async def get_screenshot() -> Image:
        """Get an image of the current terminal window."""
        async with _tool_errors("capturing screenshot"):
            screenshot = await manager.get_screenshot()
        return Image(data=screenshot.data, format=screenshot.format)

    @mcp.tool()
    async def get_screen_text() -> str:
        """Get screen as plain text."""
        async with _tool_errors("getting screen text"):
            text = await manager.get_screen_text()
        return text or "(empty screen)"

    @mcp.tool()
    async def get_status() -> str:
        """Get terminal status"""
        async with _tool_errors("getting status"):
            status = await manager.get_status()
        lines = [
            f"Current session: {status.session_name or '(none)'}",
            f"Active: {str(status.is_active).lower()}",
            f"Window ID: {status.window_id if status.window_id is not None else '(none)'}",
            f"Total sessions: {len(status.sessions)}",
        ]
        if status.sessions:
            lines.append("Sessions:")
            lines.extend(f"  - {s.name}" for s in status.sessions)
        return "\n".join(lines)

    @mcp.tool()
    async def list_sessions() -> str:
        """List active sessions"""
        async with _tool_errors("listing sessions"):
            sessions = await manager.list_sessions()
        if not sessions:
            return "No active sessions"
        lines = []
        for i, s in enumerate(sessions, start=1):
            line = f"{i}. {s.name}"
            if s.pid is not None:
                line += f" (PID: {s.pid})"
            if s.clients is not None:
                line += f" [{s.clients} client(s)]"
            lines.append(line)
        return "Active sessions:\n" + "\n".join(lines)

    @mcp.tool()
    async def kill_session(
        session_name: Annotated[str, Field(description="Name of the session to kill")],
    ) -> str:
        """Kill a session"""
        async with _tool_errors("killing session"):
            await manager.kill_session(session_name)
        return f'Killed session "{session_name}"'

    @mcp.tool()
    async def kill_all_sessions() -> str:
        """Kill every session"""
        async with _tool_errors("killing sessions"):
            count = await manager.kill_all_sessions()
        return f"Killed {count} session(s)"

    @mcp.tool()
    async def create_session(
        session_name: Annotated[str, Field(description="Name for the new session (e.g., 'dev', 'test')")],
    ) -> str:
        """Create new zmx session + open Terminal.app"""
        async with _tool_errors("creating session"):
            result = await manager.create_session(session_name)
        return f'Created session "{result.session_name}" with window ID {result.window_id}'

    @mcp.tool()
    async def resize_terminal(
        rows: Annotated[int, Field(description="Number of rows", gt=0)],
        cols: Annotated[int, Field(description="Number of columns", gt=0)],
    ) -> str:
        """Resize the terminal"""
        async with _tool_errors("resizing terminal"):
            resized = await manager.resize_terminal(rows, cols)
        if not resized:
            return "No Terminal window is open; nothing was resized"
        return f"Resized terminal to {rows} rows x {cols} columns"

    @mcp.tool()
    async def restart_terminal(
        command: Annotated[
            Optional[str], Field(description="Optional command to run in the new terminal")
        ] = None,
    ) -> str:
        """Restart the terminal (optionally with a new command)"""
        async with _tool_errors("restarting terminal"):
            result = await manager.restart_terminal(command)
        if command:
            return f'Restarted terminal with command "{command}" (session: {result.session_name})'
        return f"Restarted terminal (session: {result.session_name})"

    @mcp.tool()
    async def wait_for_text(
        text: Annotated[str, Field(description="Text to wait for")],
        timeout_ms: Annotated[
            int, Field(description="Maximum time to wait in milliseconds", ge=0)
        ] = default_timeout_ms,
    ) -> str:
        """Wait for text to appear on screen (5s default timeout)"""
        async with _tool_errors("waiting for text"):
            result = await manager.wait_for_text(text, timeout_ms)
        if result.found:
            return f'Text "{text}" found after {result.elapsed_ms}ms'
        return f'Text "{text}" not found within {timeout_ms}ms'

    @mcp.tool()
    async def wait_for_stable(
        timeout_ms: Annotated[
            int, Field(description="Maximum time to wait in milliseconds", ge=0)
        ] = default_timeout_ms,
        stable_ms: Annotated[
            int,
            Field(description="Time the screen must remain unchanged to be considered stable", ge=0),
        ] = default_stable_ms,
    ) -> str:
        """Wait for screen to stop changing (500ms stable duration)"""
        async with _tool_errors("waiting for stable screen"):
            result = await manager.wait_for_stable(timeout_ms, stable_ms)
        if result.stable:
            return f"Screen stabilized after {result.elapsed_ms}ms"
        return f"Screen did not stabilize within {timeout_ms}ms"

    return mcp
