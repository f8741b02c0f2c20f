"""Command-line interface for poof.

Provides the main entry point: running the MCP server over stdio (the
default when no subcommand is given) or listing zmx sessions.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from poof import __version__

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="poof",
        description="MCP server for AI terminal control (zmx + Terminal.app)",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/poof.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"poof-mcp v{__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("serve", help="Run the MCP server on stdio (default)")
    subparsers.add_parser("sessions", help="List zmx sessions")

    return parser.parse_args(argv)


def build_manager(settings):
    """Wire the registry, the automation driver and the manager."""
    from poof.automation.applescript import AppleScriptDriver
    from poof.manager import TerminalManager
    from poof.registry.zmx import ZmxRegistry

    registry = ZmxRegistry(
        binary=settings.registry.binary,
        timeout=settings.registry.command_timeout,
    )
    auto = settings.automation
    driver = AppleScriptDriver(
        app=auto.terminal_app,
        script_timeout=auto.script_timeout,
        permission_check_timeout=auto.permission_check_timeout,
        warmup_delay=auto.window_warmup_delay,
        capture_timeout=auto.capture_timeout,
        screenshot_format=settings.screenshot.format,
        max_dimension=settings.screenshot.max_dimension,
        jpeg_quality=settings.screenshot.jpeg_quality,
    )
    polling = settings.polling
    manager = TerminalManager(
        driver=driver,
        registry=registry,
        poll_interval_ms=polling.poll_interval_ms,
        restart_settle_ms=polling.restart_settle_ms,
        session_prefix=polling.session_prefix,
    )
    return registry, manager


def _serve(settings) -> int:
    from poof.server import create_server

    registry, manager = build_manager(settings)
    if not registry.is_available():
        print(
            f"Error: {settings.registry.binary} is not installed. "
            "Please install it from https://github.com/neurosnap/zmx",
            file=sys.stderr,
        )
        return 1

    asyncio.run(manager.start())

    server = create_server(
        manager,
        name=settings.server.name,
        default_timeout_ms=settings.polling.default_timeout_ms,
        default_stable_ms=settings.polling.default_stable_ms,
    )
    server.run()
    return 0


async def _print_sessions(registry) -> None:
    sessions = await registry.list_sessions()
    if not sessions:
        print("No active sessions")
        return
    for session in sessions:
        details = []
        if session.pid is not None:
            details.append(f"pid={session.pid}")
        if session.clients is not None:
            details.append(f"clients={session.clients}")
        print(f"{session.name}\t{' '.join(details)}".rstrip())


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the poof CLI."""
    args = parse_args(argv)

    from poof.config.settings import load_settings
    from poof.domain.errors import PoofError
    from poof.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        if args.command in (None, "serve"):
            logger.info("Starting MCP server")
            sys.exit(_serve(settings))

        elif args.command == "sessions":
            registry, _ = build_manager(settings)
            asyncio.run(_print_sessions(registry))
    except PoofError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
