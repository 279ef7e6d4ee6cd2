"""One-shot privileged command execution through sudo."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

from termctl.errors import ExternalCommandFailure

logger = logging.getLogger(__name__)


async def run_root_command(
    command: str,
    password: str,
    cwd: str | None = None,
    sudo: str = "sudo",
    timeout: float | None = None,
) -> str:
    """Run ``command`` under ``sudo -S`` to completion and return its output.

    The password goes to sudo's stdin; it never appears on a command line.
    Returns stdout, or stderr when stdout is empty (sudo and many tools
    report there).

    Raises:
        ExternalCommandFailure: non-zero exit, launch error, or timeout.
            The message carries both captured streams.
    """
    cwd = cwd or os.path.expanduser("~")
    full_command = f"{sudo} -S -p '' {command}"
    logger.info("Running root command in %s: %s", cwd, command)

    try:
        process = await asyncio.create_subprocess_shell(
            full_command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            start_new_session=True,
        )
    except OSError as e:
        raise ExternalCommandFailure(f"Failed to launch {sudo}: {e}") from e

    try:
        stdout_b, stderr_b = await asyncio.wait_for(
            process.communicate(input=(password + "\n").encode("utf-8")),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            # A setuid launcher cannot be signalled; the child watcher reaps it later
            logger.warning("Cannot kill timed-out command (pid=%d)", process.pid)
        else:
            await process.wait()
        raise ExternalCommandFailure(
            f"Command timed out after {timeout}s: {command}"
        ) from None

    stdout = stdout_b.decode("utf-8", errors="replace")
    stderr = stderr_b.decode("utf-8", errors="replace")

    if process.returncode != 0:
        logger.warning("Root command exited with %s", process.returncode)
        raise ExternalCommandFailure(
            f"Command failed with exit code {process.returncode}\n"
            f"Stderr: {stderr}\nStdout: {stdout}",
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr,
        )

    return stdout or stderr
