"""zmx session registry backend.

Drives the ``zmx`` CLI (https://github.com/neurosnap/zmx) through
asyncio subprocesses. ``zmx list`` reports one session per line as
whitespace-separated ``key=value`` tokens::

    session_name=dev    pid=4242    clients=1
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import shutil

from poof.domain.errors import RegistryError
from poof.domain.models import Session
from poof.registry.base import SessionRegistry

logger = logging.getLogger(__name__)

NO_SESSIONS_PREFIX = "no sessions found"


def parse_list_output(output: str) -> list[Session]:
    """Parse ``zmx list`` output into sessions, preserving line order.

    Fields missing from a line are None. A line with no ``session_name``
    token is taken as a bare session name.
    """
    trimmed = output.strip()
    if not trimmed or trimmed.startswith(NO_SESSIONS_PREFIX):
        return []

    sessions = []
    for line in trimmed.splitlines():
        line = line.strip()
        if not line:
            continue
        fields = {}
        for token in line.split():
            key, sep, value = token.partition("=")
            if sep:
                fields[key] = value
        sessions.append(
            Session(
                name=fields.get("session_name") or line,
                pid=_parse_int(fields.get("pid")),
                clients=_parse_int(fields.get("clients")),
            )
        )
    return sessions


def _parse_int(value: str | None) -> int | None:
    if value is None or not value.isdigit():
        return None
    return int(value)


class ZmxRegistry(SessionRegistry):
    """Session registry backed by the zmx CLI."""

    def __init__(self, binary: str = "zmx", timeout: float = 5.0) -> None:
        self._binary = binary
        self._timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    def attach_command(self, name: str) -> str:
        return f"{shlex.quote(self._binary)} attach {shlex.quote(name)}"

    async def list_sessions(self) -> list[Session]:
        returncode, stdout, stderr = await self._run("list")
        if returncode == 1:
            # zmx exits 1 when its socket directory holds no sessions
            logger.debug("zmx list exited 1, treating as no sessions: %s", stderr)
            return []
        if returncode != 0:
            raise RegistryError(
                f"zmx list failed (exit {returncode}): {stderr or stdout}",
                command="list",
            )
        sessions = parse_list_output(stdout)
        logger.debug("zmx reports %d session(s)", len(sessions))
        return sessions

    async def kill(self, name: str) -> None:
        returncode, stdout, stderr = await self._run("kill", name)
        if returncode == 0:
            logger.info("Killed session %s", name)
            return
        message = stderr or stdout
        if "not running" in message.lower():
            logger.debug("Session %s was not running", name)
            return
        raise RegistryError(
            f"zmx kill {name} failed (exit {returncode}): {message}",
            command="kill",
        )

    async def _run(self, *args: str) -> tuple[int, str, str]:
        """Run a zmx subcommand and return (returncode, stdout, stderr)."""
        try:
            process = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RegistryError(f"Cannot run {self._binary}: {e}", command=args[0]) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise RegistryError(
                f"{self._binary} {args[0]} timed out after {self._timeout}s",
                command=args[0],
            ) from e

        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace").strip(),
            stderr.decode("utf-8", errors="replace").strip(),
        )
