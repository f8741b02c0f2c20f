"""Shared test fixtures for the poof test suite.

Provides in-memory stand-ins for the automation driver and the session
registry, plus a fake clock so the polling loops run deterministically.
"""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from poof.automation.base import TerminalDriver
from poof.domain.errors import RegistryError
from poof.domain.models import KeyEvent, Screenshot, Session, WindowHandle
from poof.manager import TerminalManager
from poof.registry.base import SessionRegistry


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock in whole milliseconds, advanced only by sleep()."""

    def __init__(self) -> None:
        self.now_ms = 0

    def __call__(self) -> float:
        return self.now_ms / 1000.0

    async def sleep(self, seconds: float) -> None:
        self.now_ms += int(round(seconds * 1000))
        await asyncio.sleep(0)


class FakeRegistry(SessionRegistry):
    """Session registry holding sessions in a dict, in creation order."""

    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}
        self.kill_failures: set[str] = set()
        self.killed: list[str] = []

    def is_available(self) -> bool:
        return True

    def attach_command(self, name: str) -> str:
        return f"zmx attach {name}"

    def add(self, name: str, pid: int | None = None, clients: int | None = None) -> None:
        self.sessions[name] = Session(name=name, pid=pid, clients=clients)

    async def list_sessions(self) -> list[Session]:
        return list(self.sessions.values())

    async def kill(self, name: str) -> None:
        if name in self.kill_failures:
            raise RegistryError(f"zmx kill {name} failed: socket error", command="kill")
        self.killed.append(name)
        self.sessions.pop(name, None)


class FakeDriver(TerminalDriver):
    """Terminal driver that records calls instead of scripting Terminal.app."""

    def __init__(self, registry: FakeRegistry | None = None) -> None:
        self._registry = registry
        self._next_handle = 100
        self.front: WindowHandle | None = None
        self.screen: Callable[[], str] = lambda: ""
        self.opened: list[str] = []
        self.inputs: list[tuple[str, object]] = []
        self.captured: list[WindowHandle] = []
        self.activations = 0
        self.closed = 0
        self.reads = 0

    async def check_control_permission(self) -> None:
        return None

    async def open_window_running(self, command: str) -> WindowHandle:
        self.opened.append(command)
        if self._registry is not None and command.startswith("zmx attach "):
            self._registry.add(command.removeprefix("zmx attach "))
        self._next_handle += 1
        self.front = self._next_handle
        return self.front

    async def front_window_handle(self) -> WindowHandle | None:
        return self.front

    async def activate(self) -> None:
        self.activations += 1

    async def read_front_window_text(self) -> str:
        self.reads += 1
        return self.screen()

    async def send_key(self, event: KeyEvent) -> None:
        self.inputs.append(("key", event))

    async def type_text(self, text: str) -> None:
        self.inputs.append(("text", text))

    async def resize_front_window(self, rows: int, cols: int) -> bool:
        return self.front is not None

    async def close_front_window(self) -> bool:
        if self.front is None:
            return False
        self.front = None
        self.closed += 1
        return True

    async def capture_window(self, handle: WindowHandle) -> Screenshot:
        self.captured.append(handle)
        return Screenshot(data=b"\x89PNG fake", mime_type="image/png")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def fake_driver(fake_registry: FakeRegistry) -> FakeDriver:
    return FakeDriver(registry=fake_registry)


@pytest.fixture
def manager(
    fake_driver: FakeDriver, fake_registry: FakeRegistry, fake_clock: FakeClock
) -> TerminalManager:
    """A TerminalManager on fakes, polling against the fake clock."""
    return TerminalManager(
        driver=fake_driver,
        registry=fake_registry,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
