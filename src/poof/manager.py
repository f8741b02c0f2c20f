"""The terminal manager that orchestrates sessions, windows and polling.

Owns the single "current session / current window" state, sequences
calls across the session registry and the automation driver, and
implements the wait-for-text and wait-for-stable polling loops.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from poof.automation.base import TerminalDriver
from poof.domain.errors import (
    NoWindowError,
    RegistryError,
    UnknownKeyError,
    WindowNotFoundError,
)
from poof.domain.models import (
    CreatedSession,
    ManagerState,
    Screenshot,
    Session,
    SessionStatus,
    StableWaitResult,
    TextWaitResult,
    WindowHandle,
)
from poof.keyboard.keycodes import encode
from poof.registry.base import SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 100
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_STABLE_MS = 500


class TerminalManager:
    """Single-window orchestrator for one current terminal session.

    State machine::

        NoSession --create/restart--> Active(session, window)
        Active --restart--> Active(new session, new window)
        Active --kill current / kill all / close--> NoSession

    Public operations are serialized with a lock, so a wait in progress
    holds off other operations until it returns.
    """

    def __init__(
        self,
        driver: TerminalDriver,
        registry: SessionRegistry,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        restart_settle_ms: int = 500,
        session_prefix: str = "poof",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._driver = driver
        self._registry = registry
        self._poll_interval = poll_interval_ms / 1000.0
        self._restart_settle = restart_settle_ms / 1000.0
        self._session_prefix = session_prefix
        self._clock = clock
        self._sleep = sleep
        self._state = ManagerState()
        self._lock = asyncio.Lock()
        self._last_generated_ms = 0

    @property
    def current_session(self) -> str | None:
        return self._state.session_name

    @property
    def window_id(self) -> WindowHandle | None:
        return self._state.window_id

    async def start(self) -> None:
        """Verify the terminal application can be automated."""
        await self._driver.check_control_permission()

    # -- sessions -----------------------------------------------------------

    async def create_session(self, session_name: str) -> CreatedSession:
        async with self._lock:
            return await self._open_session(session_name)

    async def list_sessions(self) -> list[Session]:
        async with self._lock:
            return await self._registry.list_sessions()

    async def kill_session(self, session_name: str) -> None:
        async with self._lock:
            await self._registry.kill(session_name)
            if self._state.session_name == session_name:
                logger.info("Killed current session %s", session_name)
                self._state.clear()

    async def kill_all_sessions(self) -> int:
        async with self._lock:
            try:
                return await self._registry.kill_all()
            finally:
                self._state.clear()

    async def restart_terminal(self, command: str | None = None) -> CreatedSession:
        """Replace the current window and session with a fresh one.

        With ``command``, a new session name is generated and the command
        is typed and entered once the new session has settled.
        """
        async with self._lock:
            if self._state.window_id is not None:
                await self._driver.close_front_window()
            old_session = self._state.session_name
            if old_session is not None:
                try:
                    await self._registry.kill(old_session)
                except RegistryError as e:
                    logger.warning("Could not kill stale session %s: %s", old_session, e)
            self._state.clear()

            if command or old_session is None:
                session_name = self._generate_session_name()
            else:
                session_name = old_session
            created = await self._open_session(session_name)

            if command:
                await self._sleep(self._restart_settle)
                await self._driver.activate()
                await self._driver.type_text(command)
                await self._driver.send_key(encode("enter"))
                logger.info("Ran %r in session %s", command, session_name)
            return created

    # -- input --------------------------------------------------------------

    async def send_keys(self, keys: list[str]) -> int:
        """Deliver keys in order, returning how many were sent.

        Raises:
            UnknownKeyError: At the first key that cannot be encoded; keys
                before it have already been delivered.
        """
        async with self._lock:
            await self._driver.activate()
            delivered = 0
            for key in keys:
                try:
                    event = encode(key)
                except UnknownKeyError as e:
                    raise UnknownKeyError(e.key, delivered=delivered) from e
                await self._driver.send_key(event)
                delivered += 1
            return delivered

    async def type_text(self, text: str) -> int:
        async with self._lock:
            await self._driver.activate()
            await self._driver.type_text(text)
            return len(text)

    # -- observation --------------------------------------------------------

    async def get_screen_text(self) -> str:
        async with self._lock:
            return await self._driver.read_front_window_text()

    async def get_screenshot(self) -> Screenshot:
        async with self._lock:
            handle = await self._resolve_window()
            if handle is None:
                raise NoWindowError("No Terminal window is open")
            try:
                return await self._driver.capture_window(handle)
            except WindowNotFoundError:
                # the cached window was closed behind our back
                logger.info("Window %d is gone, capturing the front window instead", handle)
                self._state.window_id = None
                handle = await self._resolve_window()
                if handle is None:
                    raise NoWindowError("No Terminal window is open") from None
                return await self._driver.capture_window(handle)

    async def get_status(self) -> SessionStatus:
        async with self._lock:
            handle = await self._resolve_window()
            return SessionStatus(
                session_name=self._state.session_name,
                is_active=self._state.session_name is not None,
                window_id=handle,
                sessions=await self._registry.list_sessions(),
            )

    # -- window -------------------------------------------------------------

    async def resize_terminal(self, rows: int, cols: int) -> bool:
        async with self._lock:
            return await self._driver.resize_front_window(rows, cols)

    async def close(self) -> None:
        async with self._lock:
            if self._state.window_id is not None:
                await self._driver.close_front_window()
            self._state.clear()

    # -- polling ------------------------------------------------------------

    async def wait_for_text(self, text: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> TextWaitResult:
        """Poll the screen until it contains ``text`` as a plain substring."""
        async with self._lock:
            start = self._clock()
            while self._elapsed_ms(start) < timeout_ms:
                content = await self._sample(start, timeout_ms)
                if content is None:
                    break
                if text in content:
                    elapsed = self._elapsed_ms(start)
                    logger.debug("Found %r after %dms", text, elapsed)
                    return TextWaitResult(found=True, elapsed_ms=elapsed)
                await self._sleep(self._poll_interval)
            return TextWaitResult(found=False, elapsed_ms=self._elapsed_ms(start))

    async def wait_for_stable(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        stable_ms: int = DEFAULT_STABLE_MS,
    ) -> StableWaitResult:
        """Poll until the screen has not changed for ``stable_ms``.

        The first sample is the baseline and counts as a change at call
        start, so an unchanging screen is stable after ``stable_ms``.
        """
        async with self._lock:
            start = self._clock()
            last_content = await self._sample(start, timeout_ms)
            if last_content is None:
                return StableWaitResult(stable=False, elapsed_ms=self._elapsed_ms(start))
            last_change = start

            while self._elapsed_ms(start) < timeout_ms:
                content = await self._sample(start, timeout_ms)
                if content is None:
                    break
                if content != last_content:
                    last_content = content
                    last_change = self._clock()
                if self._elapsed_ms(last_change) >= stable_ms:
                    elapsed = self._elapsed_ms(start)
                    logger.debug("Screen stable after %dms", elapsed)
                    return StableWaitResult(stable=True, elapsed_ms=elapsed)
                await self._sleep(self._poll_interval)
            return StableWaitResult(stable=False, elapsed_ms=self._elapsed_ms(start))

    async def _sample(self, start: float, timeout_ms: int) -> str | None:
        """Read the screen within the remaining budget; None if it ran out."""
        remaining = timeout_ms / 1000.0 - (self._clock() - start)
        if remaining <= 0:
            return None
        try:
            return await asyncio.wait_for(self._driver.read_front_window_text(), timeout=remaining)
        except asyncio.TimeoutError:
            logger.debug("Screen read cut off by the wait budget")
            return None

    def _elapsed_ms(self, since: float) -> int:
        return int(round((self._clock() - since) * 1000))

    # -- helpers ------------------------------------------------------------

    async def _open_session(self, session_name: str) -> CreatedSession:
        command = self._registry.attach_command(session_name)
        window_id = await self._driver.open_window_running(command)
        self._state.session_name = session_name
        self._state.window_id = window_id
        logger.info("Session %s active in window %d", session_name, window_id)
        return CreatedSession(session_name=session_name, window_id=window_id)

    async def _resolve_window(self) -> WindowHandle | None:
        """Use the cached window handle, re-resolving it if absent.

        A re-resolved handle is only cached while a session is current,
        so close() never touches a window this process did not open.
        """
        if self._state.window_id is not None:
            return self._state.window_id
        handle = await self._driver.front_window_handle()
        if self._state.session_name is not None:
            self._state.window_id = handle
        return handle

    def _generate_session_name(self) -> str:
        now_ms = time.time_ns() // 1_000_000
        # strictly increasing, so two restarts in one millisecond differ
        now_ms = max(now_ms, self._last_generated_ms + 1)
        self._last_generated_ms = now_ms
        return f"{self._session_prefix}-{now_ms}"
