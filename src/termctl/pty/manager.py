"""PTY Manager — create, feed, drain and kill terminal sessions."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Any

from termctl.config import PTYConfig
from termctl.pty.registry import SessionRegistry
from termctl.pty.session import PTYSession, SessionMode, new_session_id

logger = logging.getLogger(__name__)


def default_shell() -> str:
    """Platform default shell: PowerShell on Windows, else $SHELL or bash."""
    if sys.platform == "win32":
        return "powershell.exe"
    return os.environ.get("SHELL") or "bash"


def _with_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


class PTYManager:
    """Lifecycle controller for terminal sessions.

    Every operation is synchronous with respect to the registry: nothing
    here awaits, so calls from concurrent tool invocations interleave only
    at statement boundaries.  Output collection happens independently in
    each session's event-loop reader.
    """

    def __init__(
        self,
        registry: SessionRegistry | None = None,
        config: PTYConfig | None = None,
    ) -> None:
        self.registry = registry if registry is not None else SessionRegistry()
        self.config = config or PTYConfig()
        # Reaping tasks of killed sessions, dropped as each one finishes
        self._reapers: set[asyncio.Task] = set()

    def create(
        self,
        cwd: str | None = None,
        shell: str | None = None,
        root_password: str | None = None,
    ) -> dict[str, Any]:
        """Spawn a new shell session and register it.

        With ``root_password`` the shell runs under the configured sudo
        launcher, reading the password from the terminal's input, which is
        written before this returns.  Never waits for the shell to become
        interactive.

        Returns:
            ``{"session_id", "shell", "cwd", "mode"}``
        """
        cwd = cwd or self.config.cwd or os.path.expanduser("~")
        shell = shell or self.config.shell or default_shell()

        if root_password:
            mode = SessionMode.ROOT
            command = [self.config.sudo, "-S", "-p", "", shell]
        else:
            mode = SessionMode.USER
            command = [shell]

        session = PTYSession(
            command=command,
            cwd=cwd,
            shell=shell,
            mode=mode,
            term=self.config.term,
            cols=self.config.cols,
            rows=self.config.rows,
        )
        while session.id in self.registry:
            session.id = new_session_id()

        session.start()
        if root_password:
            session.write(_with_newline(root_password))

        self.registry.register(session)
        return {
            "session_id": session.id,
            "shell": shell,
            "cwd": cwd,
            "mode": mode.value,
        }

    def write(self, session_id: str, command: str) -> None:
        """Send a command line to a session; does not wait for output."""
        session = self.registry.get(session_id)
        logger.debug("Writing to session %s: %r", session_id, command)
        session.write(_with_newline(command))

    def drain(self, session_id: str) -> str:
        """Return and clear everything the session printed since the last drain."""
        return self.registry.get(session_id).buffer.drain()

    def kill(self, session_id: str) -> None:
        """Terminate a session's process and forget the session."""
        session = self.registry.remove(session_id)
        reaper = session.kill(grace=self.config.kill_grace)
        if reaper is not None and not reaper.done():
            self._reapers.add(reaper)
            reaper.add_done_callback(self._reapers.discard)

    def list(self) -> list[str]:
        return self.registry.list_ids()

    def describe(self, session_id: str) -> dict[str, Any]:
        return self.registry.get(session_id).describe()

    def cleanup(self) -> None:
        """Kill all sessions. Called on shutdown."""
        for session_id in self.registry.list_ids():
            self.kill(session_id)
        logger.info("All PTY sessions cleaned up (%d still reaping)", len(self._reapers))

    async def aclose(self) -> None:
        """Kill all sessions and wait until their processes are reaped."""
        self.cleanup()
        await asyncio.gather(*self._reapers, return_exceptions=True)

    def __len__(self) -> int:
        return len(self.registry)
