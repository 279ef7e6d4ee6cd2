"""Session registry — id to PTY session mapping."""

from __future__ import annotations

import logging

from termctl.errors import SessionNotFound
from termctl.pty.session import PTYSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory table of live sessions, keyed by session id.

    Each manager owns its own registry; nothing here is process-global.
    There is no capacity limit and nothing is persisted.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, PTYSession] = {}

    def register(self, session: PTYSession) -> None:
        if session.id in self._sessions:
            raise ValueError(f"Session id {session.id} is already registered")
        self._sessions[session.id] = session
        logger.debug("Registered session %s (%d total)", session.id, len(self._sessions))

    def get(self, session_id: str) -> PTYSession:
        """Look up a session, raising ``SessionNotFound`` if absent."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def remove(self, session_id: str) -> PTYSession:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def list_ids(self) -> list[str]:
        """Snapshot of the registered ids, in creation order."""
        return list(self._sessions)

    def sessions(self) -> list[PTYSession]:
        return list(self._sessions.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
