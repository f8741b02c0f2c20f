"""AppleScript automation backend for Terminal.app.

Scripts are piped to ``osascript`` on stdin. Key events and text go
through System Events, which needs the Accessibility permission;
addressing Terminal itself needs the Automation permission. Window
images are taken with ``screencapture``, which needs Screen Recording.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from poof.automation.base import TerminalDriver
from poof.domain.errors import (
    AutomationError,
    PermissionDeniedError,
    PoofError,
    WindowNotFoundError,
)
from poof.domain.models import (
    CharacterPress,
    KeyCodePress,
    KeyEvent,
    Screenshot,
    TextInjection,
    WindowHandle,
)
from poof.utils.imaging import prepare_screenshot

logger = logging.getLogger(__name__)

PERMISSIONS_ERROR_MESSAGE = """\
PERMISSIONS REQUIRED

poof needs macOS permissions to control Terminal.app.

To fix this:

1. Open System Settings > Privacy & Security > Accessibility
   and enable the app running this MCP server
   (e.g. Claude, Terminal, iTerm2, VS Code).

2. Open System Settings > Privacy & Security > Automation
   and allow that app to control "Terminal.app".

3. If a dialog asks for access, click "OK" or "Allow".

After granting permissions, restart the MCP server."""

SCREEN_RECORDING_ERROR = """\
Screenshot failed - Screen Recording permission required.

The HOST APPLICATION running this MCP server needs Screen Recording permission.
This is typically Claude Desktop, VS Code, or Terminal - not the MCP server itself.

To fix this:
1. Find and enable the app you're using (e.g. "Claude" or "Code") in
   System Settings > Privacy & Security > Screen Recording
2. You may need to restart that app after granting permission

Alternative: use the get_screen_text tool instead (no permission required)"""

SCREEN_RECORDING_SETTINGS_URL = (
    "x-apple.systempreferences:com.apple.preference.security?Privacy_ScreenCapture"
)

PERMISSION_MARKERS = ("not allowed", "assistive access", "not authorized", "permission")
CAPTURE_PERMISSION_MARKERS = ("could not create image", "permission")

# CGWindowID of the app's frontmost normal-layer window. AppleScript window
# ids and CGWindowIDs are different namespaces; screencapture -l wants the
# latter.
CG_WINDOW_ID_SWIFT = """\
import Cocoa
let opts = CGWindowListOption(arrayLiteral: .optionOnScreenOnly)
if let list = CGWindowListCopyWindowInfo(opts, kCGNullWindowID) as? [[String: Any]] {
    for w in list {
        if let owner = w["kCGWindowOwnerName"] as? String, owner == %s,
           let layer = w["kCGWindowLayer"] as? Int, layer == 0,
           let id = w["kCGWindowNumber"] as? Int {
            print(id)
            break
        }
    }
}"""


def quote_applescript(text: str) -> str:
    """Return ``text`` as a double-quoted AppleScript string literal.

    Backslashes are doubled before quotes are escaped, so the literal
    evaluates back to exactly ``text``.
    """
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _modifier_clause(event: KeyCodePress | CharacterPress) -> str:
    if event.modifier is None:
        return ""
    return f" using {event.modifier.value} down"


class AppleScriptDriver(TerminalDriver):
    """Drives Terminal.app through osascript and screencapture."""

    def __init__(
        self,
        app: str = "Terminal",
        script_timeout: float = 5.0,
        permission_check_timeout: float = 3.0,
        warmup_delay: float = 0.5,
        capture_timeout: float = 10.0,
        screenshot_format: str = "png",
        max_dimension: int | None = None,
        jpeg_quality: int = 85,
    ) -> None:
        self._app = app
        self._script_timeout = script_timeout
        self._permission_check_timeout = permission_check_timeout
        self._warmup_delay = warmup_delay
        self._capture_timeout = capture_timeout
        self._screenshot_format = screenshot_format
        self._max_dimension = max_dimension
        self._jpeg_quality = jpeg_quality

    @property
    def app(self) -> str:
        return self._app

    # -- permission ---------------------------------------------------------

    async def check_control_permission(self) -> None:
        script = f"tell application {quote_applescript(self._app)} to return name"
        try:
            await self._run_script(script, timeout=self._permission_check_timeout)
        except PermissionDeniedError:
            raise
        except AutomationError as e:
            raise PermissionDeniedError(PERMISSIONS_ERROR_MESSAGE, detail=e.stderr) from e
        logger.info("Automation permission for %s confirmed", self._app)

    # -- windows ------------------------------------------------------------

    async def open_window_running(self, command: str) -> WindowHandle:
        script = f"""
tell application {quote_applescript(self._app)}
    activate
    do script {quote_applescript(command)}
    delay {self._warmup_delay}
    return id of front window
end tell
"""
        output = await self._run_script(script)
        try:
            handle = int(output.strip())
        except ValueError as e:
            raise AutomationError(f"Unexpected window id from {self._app}: {output!r}") from e
        logger.info("Opened %s window %d running %s", self._app, handle, command)
        return handle

    async def front_window_handle(self) -> WindowHandle | None:
        script = f"""
tell application {quote_applescript(self._app)}
    if (count of windows) > 0 then
        return id of front window
    else
        return -1
    end if
end tell
"""
        output = await self._run_script(script)
        try:
            handle = int(output.strip())
        except ValueError as e:
            raise AutomationError(f"Unexpected window id from {self._app}: {output!r}") from e
        return handle if handle > 0 else None

    async def activate(self) -> None:
        await self._run_script(f"tell application {quote_applescript(self._app)} to activate")

    async def read_front_window_text(self) -> str:
        script = f"""
tell application {quote_applescript(self._app)}
    if (count of windows) > 0 then
        return contents of selected tab of front window
    else
        return ""
    end if
end tell
"""
        return await self._run_script(script)

    async def resize_front_window(self, rows: int, cols: int) -> bool:
        script = f"""
tell application {quote_applescript(self._app)}
    if (count of windows) > 0 then
        set number of rows of front window to {int(rows)}
        set number of columns of front window to {int(cols)}
        return "true"
    else
        return "false"
    end if
end tell
"""
        return (await self._run_script(script)).strip() == "true"

    async def close_front_window(self) -> bool:
        script = f"""
tell application {quote_applescript(self._app)}
    if (count of windows) > 0 then
        close front window
        return "true"
    else
        return "false"
    end if
end tell
"""
        return (await self._run_script(script)).strip() == "true"

    # -- input --------------------------------------------------------------

    async def send_key(self, event: KeyEvent) -> None:
        if isinstance(event, TextInjection):
            await self.type_text(event.text)
            return
        if isinstance(event, KeyCodePress):
            action = f"key code {event.key_code}{_modifier_clause(event)}"
        else:
            action = f"keystroke {quote_applescript(event.character)}{_modifier_clause(event)}"
        await self._run_system_events(action)
        logger.debug("Sent key event: %s", action)

    async def type_text(self, text: str) -> None:
        await self._run_system_events(f"keystroke {quote_applescript(text)}")
        logger.debug("Typed %d character(s)", len(text))

    async def _run_system_events(self, action: str) -> None:
        script = f"""
tell application "System Events"
    tell process {quote_applescript(self._app)}
        {action}
    end tell
end tell
"""
        await self._run_script(script)

    # -- capture ------------------------------------------------------------

    async def capture_window(self, handle: WindowHandle) -> Screenshot:
        # screencapture only reliably grabs the frontmost window
        await self._bring_to_front(handle)
        capture_id = await self._resolve_capture_window_id()

        fd, tmp_name = tempfile.mkstemp(prefix="poof-screenshot-", suffix=".png")
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            try:
                returncode, output = await self._exec(
                    "screencapture", "-x", "-o", "-l", str(capture_id), str(tmp_path),
                    timeout=self._capture_timeout,
                )
            except PermissionDeniedError as e:
                raise PermissionDeniedError(SCREEN_RECORDING_ERROR, detail=e.detail) from e
            if returncode != 0 or tmp_path.stat().st_size == 0:
                await self._raise_capture_failure(output or f"Exit code {returncode}")
            png_data = tmp_path.read_bytes()
        finally:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug("Could not remove %s: %s", tmp_path, e)

        try:
            data, mime_type = prepare_screenshot(
                png_data,
                image_format=self._screenshot_format,
                max_dimension=self._max_dimension,
                jpeg_quality=self._jpeg_quality,
            )
        except ValueError as e:
            raise AutomationError(f"Could not capture screenshot: {e}") from e
        logger.info("Captured window %d (%d bytes, %s)", handle, len(data), mime_type)
        return Screenshot(data=data, mime_type=mime_type)

    async def _bring_to_front(self, handle: WindowHandle) -> None:
        script = f"""
tell application {quote_applescript(self._app)}
    if not (exists window id {int(handle)}) then
        return "missing"
    end if
    set index of window id {int(handle)} to 1
    activate
    return "ok"
end tell
"""
        if (await self._run_script(script)).strip() == "missing":
            raise WindowNotFoundError(
                f"Could not find {self._app} window {handle}. Make sure {self._app} is open."
            )

    async def _resolve_capture_window_id(self) -> int:
        swift_source = CG_WINDOW_ID_SWIFT % quote_applescript(self._app)
        try:
            returncode, output = await self._exec(
                "swift", "-e", swift_source, timeout=self._capture_timeout
            )
        except PermissionDeniedError as e:
            raise WindowNotFoundError(
                f"Timed out resolving the {self._app} window for capture"
            ) from e
        output = output.strip()
        if returncode != 0 or not output.isdigit():
            raise WindowNotFoundError(
                f"Could not find {self._app} window. Make sure {self._app} is open."
                + (f" ({output})" if output else "")
            )
        return int(output)

    async def _raise_capture_failure(self, message: str) -> None:
        if any(marker in message.lower() for marker in CAPTURE_PERMISSION_MARKERS):
            try:
                await self._exec("open", SCREEN_RECORDING_SETTINGS_URL, timeout=self._script_timeout)
            except PoofError as e:
                logger.warning("Could not open Screen Recording settings: %s", e)
            raise PermissionDeniedError(
                SCREEN_RECORDING_ERROR
                + "\n\nSystem Settings has been opened to the Screen Recording panel.",
                detail=message,
            )
        raise AutomationError(f"Could not capture screenshot: {message}")

    # -- process plumbing ---------------------------------------------------

    async def _run_script(self, script: str, timeout: float | None = None) -> str:
        """Run an AppleScript via osascript and return its output.

        A timeout or a signal-killed osascript is taken as a blocked
        consent dialog and reported as PermissionDeniedError.
        """
        timeout = timeout or self._script_timeout
        returncode, stdout, stderr = await self._communicate(
            ["osascript"], timeout, stdin=script.encode("utf-8")
        )
        if returncode != 0:
            if any(marker in stderr.lower() for marker in PERMISSION_MARKERS):
                raise PermissionDeniedError(PERMISSIONS_ERROR_MESSAGE, detail=stderr)
            raise AutomationError(f"AppleScript error: {stderr}", stderr=stderr)
        return stdout.removesuffix("\n")

    async def _exec(self, *args: str, timeout: float) -> tuple[int, str]:
        """Run a helper program, returning (returncode, stdout + stderr)."""
        returncode, stdout, stderr = await self._communicate(list(args), timeout)
        return returncode, (stdout + stderr).strip()

    async def _communicate(
        self, args: list[str], timeout: float, stdin: bytes | None = None
    ) -> tuple[int, str, str]:
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise AutomationError(f"Cannot run {args[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(stdin), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise PermissionDeniedError(
                PERMISSIONS_ERROR_MESSAGE,
                detail=f"{args[0]} timed out after {timeout}s",
            ) from e
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if process.returncode < 0:
            raise PermissionDeniedError(
                PERMISSIONS_ERROR_MESSAGE,
                detail=f"{args[0]} was killed by signal {-process.returncode}",
            )
        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )
