"""Error taxonomy shared by the session controller and the collaborators.

Everything raised here is caught at the tool dispatch boundary and turned
into an error-flagged text result.
"""

from __future__ import annotations


class TermctlError(Exception):
    """Base class for all expected, per-call failures."""


class SessionNotFound(TermctlError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found.")
        self.session_id = session_id


class SpawnFailure(TermctlError):
    """The OS process backing a session could not be created."""


class ExternalCommandFailure(TermctlError):
    """A one-shot external command exited non-zero or could not launch."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class FileAccessFailure(TermctlError):
    """A file is missing or its contents could not be extracted."""


class ConfigWriteFailure(TermctlError):
    """The setup routine could not write the client configuration."""
