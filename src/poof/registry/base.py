"""Abstract base class for the session registry.

The registry is an external process manager that durably tracks named
terminal sessions. poof never owns sessions; it only lists them, kills
them, and asks for the shell command that attaches a window to one.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from poof.domain.models import Session

logger = logging.getLogger(__name__)


class SessionRegistry(ABC):
    """Abstract interface over an external session manager.

    Example usage::

        registry = ZmxRegistry()
        command = registry.attach_command("dev")
        sessions = await registry.list_sessions()
        await registry.kill("dev")
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the session manager can be invoked at all."""
        ...

    @abstractmethod
    async def list_sessions(self) -> list[Session]:
        """List sessions in the registry's native report order.

        No sessions is an empty list, not an error.

        Raises:
            RegistryError: If the registry cannot be queried.
        """
        ...

    @abstractmethod
    def attach_command(self, name: str) -> str:
        """Shell command that attaches a window to (or creates) ``name``."""
        ...

    @abstractmethod
    async def kill(self, name: str) -> None:
        """Kill one session. A session that is not running is not an error.

        Raises:
            RegistryError: For any other failure.
        """
        ...

    async def exists(self, name: str) -> bool:
        sessions = await self.list_sessions()
        return any(s.name == name for s in sessions)

    async def kill_all(self) -> int:
        """Kill every listed session.

        Returns:
            The number of sessions listed before killing. Sessions created
            concurrently by someone else are not counted.
        """
        sessions = await self.list_sessions()
        for session in sessions:
            await self.kill(session.name)
        logger.info("Killed %d session(s)", len(sessions))
        return len(sessions)
