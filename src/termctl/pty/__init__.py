"""PTY process management — tracked pseudo-terminal shell sessions.

Each session owns one shell on its own PTY, collects its output into an
append/drain buffer, and lives in a ``SessionRegistry`` until killed.
"""

from termctl.pty.buffer import OutputBuffer
from termctl.pty.manager import PTYManager, default_shell
from termctl.pty.registry import SessionRegistry
from termctl.pty.session import EXIT_MARKER, PTYSession, PTYStatus, SessionMode

__all__ = [
    "EXIT_MARKER",
    "OutputBuffer",
    "PTYManager",
    "PTYSession",
    "PTYStatus",
    "SessionMode",
    "SessionRegistry",
    "default_shell",
]
