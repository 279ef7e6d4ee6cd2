"""Collaborators around external programs and libraries.

None of these touch the session registry; each is a single awaitable
call that returns text or raises a ``TermctlError``.
"""

from termctl.external.logs import get_system_logs
from termctl.external.privileged import run_root_command
from termctl.external.special_file import read_special_file

__all__ = ["get_system_logs", "read_special_file", "run_root_command"]
