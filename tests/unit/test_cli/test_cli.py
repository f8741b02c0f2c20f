"""Tests for the command-line entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from poof import cli
from poof.config.settings import Settings
from poof.domain.errors import RegistryError
from poof.domain.models import Session


class TestParseArgs:
    def test_defaults_to_serve(self) -> None:
        args = cli.parse_args([])
        assert args.command is None
        assert args.config is None
        assert not args.verbose

    def test_sessions_with_options(self) -> None:
        args = cli.parse_args(["-v", "-c", "custom.yaml", "sessions"])
        assert args.command == "sessions"
        assert args.config == Path("custom.yaml")
        assert args.verbose

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "poof-mcp v" in capsys.readouterr().out


class TestBuildManager:
    def test_wires_settings(self) -> None:
        settings = Settings()
        settings.registry.binary = "/opt/zmx"
        settings.automation.terminal_app = "iTerm"

        registry, manager = cli.build_manager(settings)

        assert registry.attach_command("dev") == "/opt/zmx attach dev"
        assert manager.current_session is None


class TestServe:
    def test_missing_zmx_exits_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("shutil.which", return_value=None):
            assert cli._serve(Settings()) == 1
        assert "zmx is not installed" in capsys.readouterr().err

    def test_runs_server(self) -> None:
        server = MagicMock()
        with patch("shutil.which", return_value="/usr/local/bin/zmx"), \
             patch("poof.manager.TerminalManager.start", AsyncMock()) as start, \
             patch("poof.server.create_server", return_value=server) as create:
            assert cli._serve(Settings()) == 0
        start.assert_awaited_once()
        assert create.call_args.kwargs["default_timeout_ms"] == 5000
        server.run.assert_called_once()


class TestSessionsCommand:
    @pytest.mark.asyncio
    async def test_prints_sessions(self, capsys: pytest.CaptureFixture[str]) -> None:
        registry = MagicMock()
        registry.list_sessions = AsyncMock(
            return_value=[Session(name="dev", pid=12, clients=1), Session(name="bare")]
        )
        await cli._print_sessions(registry)
        assert capsys.readouterr().out.splitlines() == ["dev\tpid=12 clients=1", "bare"]

    @pytest.mark.asyncio
    async def test_prints_none(self, capsys: pytest.CaptureFixture[str]) -> None:
        registry = MagicMock()
        registry.list_sessions = AsyncMock(return_value=[])
        await cli._print_sessions(registry)
        assert capsys.readouterr().out == "No active sessions\n"

    def test_main_reports_registry_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        failing = AsyncMock(side_effect=RegistryError("zmx list failed (exit 2): boom"))
        with patch("poof.registry.zmx.ZmxRegistry.list_sessions", failing):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["-c", str(tmp_path / "missing.yaml"), "sessions"])
        assert exc_info.value.code == 1
        assert "Error: zmx list failed" in capsys.readouterr().err
        logging.getLogger("poof").handlers.clear()
        logging.getLogger("poof").propagate = True
