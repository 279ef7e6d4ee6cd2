"""System log access: tail a log file, or fall back to the journal."""

from __future__ import annotations

import asyncio
import logging
import os

from termctl.errors import ExternalCommandFailure

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "/var/log/syslog"
DEFAULT_LINES = 50


def log_command(log_file: str, lines: int) -> list[str]:
    """Pick the command that reads the last ``lines`` entries."""
    if os.path.exists(log_file):
        return ["tail", "-n", str(lines), log_file]
    return ["journalctl", "-n", str(lines), "--no-pager"]


async def get_system_logs(
    log_file: str | None = None, lines: int = DEFAULT_LINES
) -> str:
    """Return the tail of ``log_file`` (or of the systemd journal).

    Raises:
        ExternalCommandFailure: the reader could not start or exited non-zero.
    """
    argv = log_command(log_file or DEFAULT_LOG_FILE, lines)
    logger.debug("Reading logs: %s", " ".join(argv))

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ExternalCommandFailure(f"Error reading logs: {e}") from e

    stdout_b, stderr_b = await process.communicate()
    stdout = stdout_b.decode("utf-8", errors="replace")
    stderr = stderr_b.decode("utf-8", errors="replace")

    if process.returncode != 0:
        raise ExternalCommandFailure(
            f"Error reading logs: {argv[0]} exited with code {process.returncode}\n{stderr}",
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr,
        )
    return stdout
