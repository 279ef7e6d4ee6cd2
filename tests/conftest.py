"""Shared fixtures: PTY managers running /bin/sh in temp directories."""

from __future__ import annotations

import asyncio
import os
import stat
from pathlib import Path
from typing import AsyncIterator

import pytest

from termctl.config import PTYConfig
from termctl.pty.manager import PTYManager


async def read_until(
    manager: PTYManager, session_id: str, needle: str, timeout: float = 10.0
) -> str:
    """Drain a session repeatedly until ``needle`` shows up; return all of it."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    collected = ""
    while True:
        collected += manager.drain(session_id)
        if needle in collected:
            return collected
        if loop.time() >= deadline:
            raise AssertionError(f"{needle!r} not seen within {timeout}s; got {collected!r}")
        await asyncio.sleep(0.05)


def write_script(path: Path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def fake_sudo(tmp_path: Path) -> str:
    """Stand-in for ``sudo -S -p ''``: reads one password line from stdin.

    Accepts only "secret"; reports what it read, then runs the rest of
    its arguments.
    """
    return write_script(
        tmp_path / "fake-sudo",
        'shift 3\n'
        'read -r pw\n'
        'if [ "$pw" != "secret" ]; then\n'
        '  echo "sudo: 1 incorrect password attempt" >&2\n'
        '  exit 1\n'
        'fi\n'
        'echo "GOT-$pw"\n'
        'exec "$@"\n',
    )


@pytest.fixture
async def manager(tmp_path: Path, fake_sudo: str) -> AsyncIterator[PTYManager]:
    workdir = tmp_path / "work"
    workdir.mkdir()
    mgr = PTYManager(
        config=PTYConfig(shell="/bin/sh", cwd=str(workdir), kill_grace=0.5, sudo=fake_sudo)
    )
    yield mgr
    await mgr.aclose()


@pytest.fixture
def env_clean(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("TERMCTL_"):
            monkeypatch.delenv(key)
