"""Tests for the zmx session registry backend (mocked subprocess)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from poof.domain.errors import RegistryError
from poof.domain.models import Session
from poof.registry.zmx import ZmxRegistry, parse_list_output


def _process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    process.returncode = returncode
    return process


class TestParseListOutput:
    def test_no_sessions_report(self) -> None:
        assert parse_list_output("no sessions found in /tmp/x") == []

    def test_empty_output(self) -> None:
        assert parse_list_output("  \n") == []

    def test_full_line(self) -> None:
        sessions = parse_list_output("session_name=dev pid=123 clients=2")
        assert sessions == [Session(name="dev", pid=123, clients=2)]

    def test_missing_fields_are_none(self) -> None:
        (session,) = parse_list_output("session_name=x")
        assert session.name == "x"
        assert session.pid is None
        assert session.clients is None

    def test_preserves_order_and_skips_blank_lines(self) -> None:
        output = "session_name=b\tpid=2\n\nsession_name=a\tpid=1\n"
        assert [s.name for s in parse_list_output(output)] == ["b", "a"]

    def test_bare_line_is_name(self) -> None:
        assert parse_list_output("legacy")[0].name == "legacy"

    def test_non_numeric_pid_is_none(self) -> None:
        assert parse_list_output("session_name=x pid=?")[0].pid is None


class TestZmxRegistry:
    def test_attach_command_quotes_name(self) -> None:
        registry = ZmxRegistry()
        assert registry.attach_command("dev") == "zmx attach dev"
        assert registry.attach_command("my session") == "zmx attach 'my session'"

    def test_is_available(self) -> None:
        with patch("shutil.which", return_value="/usr/local/bin/zmx"):
            assert ZmxRegistry().is_available()
        with patch("shutil.which", return_value=None):
            assert not ZmxRegistry().is_available()

    @pytest.mark.asyncio
    async def test_list_sessions(self) -> None:
        process = _process(b"session_name=dev\tpid=42\tclients=1\n")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            sessions = await ZmxRegistry(binary="zmx").list_sessions()
        assert sessions == [Session(name="dev", pid=42, clients=1)]
        assert exec_mock.call_args.args[:2] == ("zmx", "list")

    @pytest.mark.asyncio
    async def test_list_exit_one_is_empty(self) -> None:
        process = _process(stderr=b"no such directory", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            assert await ZmxRegistry().list_sessions() == []

    @pytest.mark.asyncio
    async def test_list_other_failure_raises(self) -> None:
        process = _process(stderr=b"boom", returncode=2)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RegistryError, match="boom"):
                await ZmxRegistry().list_sessions()

    @pytest.mark.asyncio
    async def test_missing_binary_raises(self) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("zmx"))):
            with pytest.raises(RegistryError, match="Cannot run"):
                await ZmxRegistry().list_sessions()

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self) -> None:
        process = _process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RegistryError, match="timed out"):
                await ZmxRegistry(timeout=0.5).list_sessions()
        process.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_kill(self) -> None:
        process = _process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as exec_mock:
            await ZmxRegistry().kill("dev")
        assert exec_mock.call_args.args[:3] == ("zmx", "kill", "dev")

    @pytest.mark.asyncio
    async def test_kill_not_running_is_ignored(self) -> None:
        process = _process(stderr=b"error: session dev is not running", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            await ZmxRegistry().kill("dev")

    @pytest.mark.asyncio
    async def test_kill_failure_raises(self) -> None:
        process = _process(stderr=b"permission denied on socket", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RegistryError, match="permission denied"):
                await ZmxRegistry().kill("dev")

    @pytest.mark.asyncio
    async def test_kill_all_returns_count_before_killing(self) -> None:
        registry = ZmxRegistry()
        registry.list_sessions = AsyncMock(
            return_value=[Session(name="a"), Session(name="b")]
        )
        registry.kill = AsyncMock()
        assert await registry.kill_all() == 2
        assert [c.args[0] for c in registry.kill.call_args_list] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_exists(self) -> None:
        registry = ZmxRegistry()
        registry.list_sessions = AsyncMock(return_value=[Session(name="dev")])
        assert await registry.exists("dev")
        assert not await registry.exists("prod")
