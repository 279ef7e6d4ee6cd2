"""PTY session — one shell running behind a pseudo-terminal."""

from __future__ import annotations

import asyncio
import codecs
import enum
import fcntl
import logging
import os
import pty
import signal
import struct
import subprocess
import termios
import uuid
from dataclasses import dataclass, field

from termctl.errors import SpawnFailure, TermctlError
from termctl.pty.buffer import OutputBuffer

logger = logging.getLogger(__name__)

EXIT_MARKER = "\n[Process exited]\n"
READ_CHUNK = 4096
# Output still queued in the terminal when the process exits is read
# before the exit marker, up to this many chunks.
EXIT_FLUSH_CHUNKS = 64
EXIT_POLL_INTERVAL = 0.05


class SessionMode(enum.StrEnum):
    USER = "user"
    ROOT = "root"


class PTYStatus(enum.Enum):
    """Lifecycle states for a PTY session."""

    RUNNING = "running"
    KILLED = "killed"  # Terminated by us
    EXITED = "exited"  # Process exited on its own


def new_session_id() -> str:
    return uuid.uuid4().hex


def _make_controlling_tty() -> None:
    """Run in the child: new session with the PTY slave (fd 0) as its terminal.

    ``start_new_session`` alone leaves the shell without a controlling
    terminal, so job control, ``/dev/tty`` and ^C would not work.  This
    hook runs between fork and exec and only makes the two system calls
    below: it takes no locks, imports nothing and logs nothing, which is
    what makes a ``preexec_fn`` safe while worker threads exist.
    """
    os.setsid()
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


@dataclass
class PTYSession:
    """A shell process attached to a pseudo-terminal.

    Output is collected continuously by an event-loop reader on the master
    fd and appended to ``buffer`` whether or not anyone is reading.  Input
    that the terminal cannot take right away is queued and flushed by an
    event-loop writer, so ``write`` never blocks.

    A watcher task polls the process itself.  When it exits on its own,
    ``EXIT_MARKER`` is appended and the session stays around (status
    ``EXITED``) so the final output can still be drained.  The reader keeps
    going until EOF, since background jobs may still hold the terminal.
    ``kill()`` hangs up the terminal and signals the process group.

    Root sessions are the same thing with ``command`` wrapped in a
    privilege-escalation launcher and a secret fed to stdin right after
    spawning (see ``PTYManager.create``).
    """

    command: list[str] = field(default_factory=list)
    cwd: str = field(default_factory=os.getcwd)
    shell: str = ""
    mode: SessionMode = SessionMode.USER
    env: dict[str, str] = field(default_factory=dict)
    term: str = "xterm-color"
    cols: int = 80
    rows: int = 30
    id: str = field(default_factory=new_session_id)

    buffer: OutputBuffer = field(default_factory=OutputBuffer)
    _master_fd: int = field(default=-1, init=False)
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _pgid: int = field(default=0, init=False)
    _status: PTYStatus = field(default=PTYStatus.RUNNING, init=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False)
    _decoder: codecs.IncrementalDecoder = field(
        default_factory=lambda: codecs.getincrementaldecoder("utf-8")(errors="replace"),
        init=False,
    )
    _reading: bool = field(default=False, init=False)
    _writing: bool = field(default=False, init=False)
    _pending_input: bytearray = field(default_factory=bytearray, init=False)
    _exit_watch: asyncio.Task | None = field(default=None, init=False)
    _reaper: asyncio.Task | None = field(default=None, init=False)

    def start(self) -> None:
        """Spawn the process on a fresh PTY and start collecting its output.

        Must be called from inside a running event loop.
        """
        loop = asyncio.get_running_loop()
        master_fd, slave_fd = pty.openpty()
        fcntl.ioctl(
            slave_fd, termios.TIOCSWINSZ, struct.pack("HHHH", self.rows, self.cols, 0, 0)
        )

        env = {**os.environ, **self.env}
        env["TERM"] = self.term

        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                preexec_fn=_make_controlling_tty,
                env=env,
                cwd=self.cwd,
                close_fds=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            os.close(master_fd)
            raise SpawnFailure(
                f"Failed to spawn {' '.join(self.command)} in {self.cwd}: {e}"
            ) from e
        finally:
            # Parent always closes slave fd
            os.close(slave_fd)

        self._master_fd = master_fd
        self._pgid = self._proc.pid
        self._status = PTYStatus.RUNNING
        self._loop = loop

        os.set_blocking(master_fd, False)
        loop.add_reader(master_fd, self._on_readable)
        self._reading = True
        self._exit_watch = loop.create_task(self._watch_exit())

        logger.info(
            "PTY session %s started: pid=%d mode=%s cmd=%s",
            self.id,
            self._proc.pid,
            self.mode,
            " ".join(self.command),
        )

    # --- Output ---

    def _on_readable(self) -> None:
        self._read_chunk()

    def _read_chunk(self) -> bool:
        """Move one chunk from the terminal into the buffer.

        Returns False when nothing was read (no data ready, or EOF).
        """
        try:
            data = os.read(self._master_fd, READ_CHUNK)
        except BlockingIOError:
            return False
        except OSError:
            # EIO: every slave fd is closed
            data = b""

        if data:
            self.buffer.append(self._decoder.decode(data))
            return True

        self._stop_reading()
        self.buffer.append(self._decoder.decode(b"", final=True))
        return False

    def _stop_reading(self) -> None:
        if self._reading and self._loop is not None:
            self._loop.remove_reader(self._master_fd)
        self._reading = False

    async def _watch_exit(self) -> None:
        exit_code = await self.wait_for_exit(timeout=None)
        if self._status != PTYStatus.RUNNING:
            return

        for _ in range(EXIT_FLUSH_CHUNKS):
            if not (self._reading and self._read_chunk()):
                break
        self._stop_writing()
        self._status = PTYStatus.EXITED
        self.buffer.append(EXIT_MARKER)
        logger.info("PTY session %s exited (code=%s)", self.id, exit_code)

    # --- Input ---

    def write(self, data: str) -> None:
        """Queue raw text for the terminal's input.  Never blocks."""
        if self._status != PTYStatus.RUNNING:
            raise TermctlError(f"Session {self.id} is not running ({self._status.value}).")

        payload = data.encode("utf-8")
        if self._writing:
            self._pending_input += payload
            return

        try:
            written = os.write(self._master_fd, payload)
        except BlockingIOError:
            written = 0
        except OSError as e:
            raise TermctlError(f"Session {self.id} terminal is closed: {e}") from e
        if written < len(payload):
            self._pending_input += payload[written:]
            self._loop.add_writer(self._master_fd, self._on_writable)
            self._writing = True

    def _on_writable(self) -> None:
        try:
            written = os.write(self._master_fd, self._pending_input)
        except BlockingIOError:
            return
        except OSError as e:
            logger.debug("Dropping queued input for session %s: %s", self.id, e)
            self._stop_writing()
            return
        del self._pending_input[:written]
        if not self._pending_input:
            self._stop_writing()

    def _stop_writing(self) -> None:
        if self._writing and self._loop is not None:
            self._loop.remove_writer(self._master_fd)
        self._writing = False
        self._pending_input.clear()

    # --- Termination ---

    def kill(self, grace: float = 2.0) -> asyncio.Task | None:
        """Hang up the terminal and terminate the process group.

        Returns immediately with the background reaping task, which falls
        back to SIGKILL if the process outlives ``grace`` seconds.
        """
        if self._status == PTYStatus.KILLED:
            return self._reaper
        was_running = self._status == PTYStatus.RUNNING
        self._status = PTYStatus.KILLED
        if self._exit_watch is not None:
            self._exit_watch.cancel()
        self._stop_reading()
        self._stop_writing()

        if was_running:
            try:
                os.killpg(self._pgid, signal.SIGHUP)
            except ProcessLookupError:
                logger.debug("Process group already gone: %d", self._pgid)
            except PermissionError:
                # Privileged sessions: closing the master below hangs them up
                logger.debug("Not permitted to signal pgid %d", self._pgid)

        if self._master_fd >= 0:
            try:
                os.close(self._master_fd)
            except OSError:
                pass
            self._master_fd = -1

        logger.info("Killed PTY session %s (pgid=%d)", self.id, self._pgid)
        if self._loop is not None and not self._loop.is_closed():
            self._reaper = self._loop.create_task(self._reap_killed(grace))
        return self._reaper

    async def _reap_killed(self, grace: float) -> None:
        if await self.wait_for_exit(timeout=grace) is not None:
            return
        logger.warning("PTY session %s ignored SIGHUP, sending SIGKILL", self.id)
        try:
            os.killpg(self._pgid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError) as e:
            logger.debug("SIGKILL for pgid %d failed: %s", self._pgid, e)
        await self.wait_for_exit(timeout=grace)

    async def wait_for_exit(self, timeout: float | None = 10.0) -> int | None:
        """Wait for the process to exit.

        Returns the exit code, or None on timeout.  ``timeout=None`` waits
        indefinitely.
        """
        if self._proc is None:
            return -1
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            ret = self._proc.poll()
            if ret is not None:
                return ret
            if deadline is not None and loop.time() >= deadline:
                return None
            await asyncio.sleep(EXIT_POLL_INTERVAL)

    @property
    def status(self) -> PTYStatus:
        return self._status

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    def describe(self) -> dict[str, object]:
        return {
            "session_id": self.id,
            "shell": self.shell,
            "cwd": self.cwd,
            "mode": self.mode.value,
            "status": self._status.value,
            "pid": self.pid,
        }
