"""End-to-end tests for termctl.pty.manager.PTYManager with real shells."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import pytest

from termctl.config import PTYConfig
from termctl.errors import SessionNotFound, SpawnFailure, TermctlError
from termctl.pty.manager import PTYManager, default_shell
from termctl.pty.session import EXIT_MARKER, PTYStatus

from conftest import read_until


class TestCreate:
    async def test_create_returns_descriptor(self, manager: PTYManager) -> None:
        info = manager.create()
        assert set(info) == {"session_id", "shell", "cwd", "mode"}
        assert info["shell"] == "/bin/sh"
        assert info["cwd"] == manager.config.cwd
        assert info["mode"] == "user"
        json.dumps(info)

    async def test_new_id_is_listed(self, manager: PTYManager) -> None:
        before = set(manager.list())
        sid = manager.create()["session_id"]
        assert sid not in before
        assert sid in manager.list()

    async def test_explicit_cwd_and_shell(self, manager: PTYManager, tmp_path: Path) -> None:
        info = manager.create(cwd=str(tmp_path), shell="/bin/sh")
        assert info["cwd"] == str(tmp_path)
        manager.write(info["session_id"], "pwd")
        out = await read_until(manager, info["session_id"], str(tmp_path) + "\r\n")
        assert str(tmp_path) in out

    async def test_defaults_to_home_and_platform_shell(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SHELL", "/bin/sh")
        mgr = PTYManager(config=PTYConfig(kill_grace=0.5))
        try:
            info = mgr.create()
            assert info["cwd"] == os.path.expanduser("~")
            assert info["shell"] == "/bin/sh"
        finally:
            await mgr.aclose()

    async def test_missing_shell_is_spawn_failure(self, manager: PTYManager) -> None:
        with pytest.raises(SpawnFailure):
            manager.create(shell="/nonexistent/shell")
        assert manager.list() == []

    async def test_missing_cwd_is_spawn_failure(self, manager: PTYManager, tmp_path: Path) -> None:
        with pytest.raises(SpawnFailure):
            manager.create(cwd=str(tmp_path / "nope"))
        assert len(manager) == 0

    async def test_sessions_have_distinct_ids(self, manager: PTYManager) -> None:
        a = manager.create()["session_id"]
        b = manager.create()["session_id"]
        assert a != b
        assert manager.list() == [a, b]


class TestDefaultShell:
    def test_posix_uses_shell_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.setenv("SHELL", "/usr/bin/zsh")
        assert default_shell() == "/usr/bin/zsh"

    def test_posix_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.delenv("SHELL", raising=False)
        assert default_shell() == "bash"

    def test_windows(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "win32")
        assert default_shell() == "powershell.exe"


class TestWriteAndDrain:
    async def test_fresh_session_drains_empty(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        # No event-loop turn has happened, so the reader cannot have run yet
        assert manager.drain(sid) == ""

    async def test_drain_is_exactly_once(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, 'echo "mark"er')
        out = await read_until(manager, sid, "marker")
        assert "marker" in out
        assert manager.drain(sid) == ""

    async def test_newline_appended_once(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, 'echo "one"1\n')
        manager.write(sid, 'echo "two"2')
        out = await read_until(manager, sid, "two2")
        assert "one1" in out

    async def test_ls_lists_fixture_directory(self, manager: PTYManager, tmp_path: Path) -> None:
        fixture = tmp_path / "listing"
        fixture.mkdir()
        for name in ("alpha.txt", "beta.log", "gamma.dat"):
            (fixture / name).write_text(name)
        sid = manager.create(cwd=str(fixture))["session_id"]
        manager.write(sid, "ls")
        out = await read_until(manager, sid, "gamma.dat")
        assert "alpha.txt" in out
        assert "beta.log" in out

    async def test_shell_state_persists(self, manager: PTYManager, tmp_path: Path) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, f"cd {tmp_path}")
        manager.write(sid, "FOO=persist")
        manager.write(sid, 'echo "$FOO-$(pwd)-"done')
        out = await read_until(manager, sid, "-done")
        assert f"persist-{tmp_path}-done" in out

    async def test_sessions_have_independent_buffers(self, manager: PTYManager) -> None:
        a = manager.create()["session_id"]
        b = manager.create()["session_id"]
        manager.write(a, 'echo "only"A')
        await read_until(manager, a, "onlyA")
        await asyncio.sleep(0.2)
        assert "onlyA" not in manager.drain(b)

    async def test_output_arrives_without_reads(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, 'echo "bg"out')
        await asyncio.sleep(1.5)
        assert "bgout" in manager.drain(sid)

    async def test_large_input_does_not_block(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, "sleep 1")
        filler = "x" * 200
        loop = asyncio.get_running_loop()
        started = loop.time()
        for i in range(600):
            manager.write(sid, f'echo {filler} "lin"e{i}')
        manager.write(sid, 'echo "all"done')
        assert loop.time() - started < 1.0

        out = await read_until(manager, sid, "alldone", timeout=60)
        assert "line0\r\n" in out
        assert "line599\r\n" in out

    async def test_other_sessions_served_while_input_queued(self, manager: PTYManager) -> None:
        busy = manager.create()["session_id"]
        manager.write(busy, "sleep 2")
        for i in range(600):
            manager.write(busy, f"echo {'y' * 200} {i}")
        other = manager.create()["session_id"]
        manager.write(other, 'echo "still"responsive')
        out = await read_until(manager, other, "stillresponsive", timeout=1.5)
        assert "stillresponsive" in out

    async def test_shell_owns_its_terminal(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, '(: < /dev/tty) && echo "ctty"ok')
        assert "cttyok" in await read_until(manager, sid, "cttyok")

    async def test_unicode_round_trips(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, "printf 'caf\\303\\251-ok\\n'")
        out = await read_until(manager, sid, "café-ok")
        assert "�" not in out


class TestExitAndKill:
    async def test_spontaneous_exit_keeps_session(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, 'echo "last"words; exit 3')
        out = await read_until(manager, sid, EXIT_MARKER)
        assert "lastwords" in out
        assert sid in manager.list()
        session = manager.registry.get(sid)
        assert session.status == PTYStatus.EXITED
        assert await session.wait_for_exit(timeout=5) == 3
        assert manager.drain(sid) == ""

    async def test_exit_seen_while_background_job_holds_terminal(
        self, manager: PTYManager
    ) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, "sleep 5 & exit")
        out = await read_until(manager, sid, EXIT_MARKER, timeout=3)
        assert out.endswith(EXIT_MARKER)
        assert manager.describe(sid)["status"] == "exited"
        with pytest.raises(TermctlError):
            manager.write(sid, "echo hi")

    async def test_write_after_exit_fails(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, "exit")
        await read_until(manager, sid, EXIT_MARKER)
        with pytest.raises(TermctlError):
            manager.write(sid, "echo hi")

    async def test_kill_exited_session(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, "exit")
        await read_until(manager, sid, EXIT_MARKER)
        manager.kill(sid)
        assert sid not in manager.list()

    async def test_kill_removes_and_terminates(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        session = manager.registry.get(sid)
        manager.kill(sid)
        assert sid not in manager.list()
        assert session.status == PTYStatus.KILLED
        assert await session.wait_for_exit(timeout=5) is not None

    async def test_kill_terminates_when_hangup_ignored(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.write(sid, "trap '' HUP; echo \"trap\"set")
        await read_until(manager, sid, "trapset")
        session = manager.registry.get(sid)
        manager.kill(sid)
        await manager.aclose()
        assert session.pid is not None
        assert await session.wait_for_exit(timeout=1) is not None

    async def test_killed_sessions_are_released(self, manager: PTYManager) -> None:
        for _ in range(5):
            manager.kill(manager.create()["session_id"])
        assert len(manager._reapers) == 5
        loop = asyncio.get_running_loop()
        deadline = loop.time() + 5
        while manager._reapers and loop.time() < deadline:
            await asyncio.sleep(0.1)
        assert not manager._reapers

    async def test_operations_after_kill_are_not_found(self, manager: PTYManager) -> None:
        sid = manager.create()["session_id"]
        manager.kill(sid)
        with pytest.raises(SessionNotFound):
            manager.write(sid, "ls")
        with pytest.raises(SessionNotFound):
            manager.drain(sid)
        with pytest.raises(SessionNotFound):
            manager.kill(sid)

    async def test_unknown_id_is_not_found(self, manager: PTYManager) -> None:
        for op in (manager.drain, manager.kill, manager.describe):
            with pytest.raises(SessionNotFound):
                op("does-not-exist")
        with pytest.raises(SessionNotFound):
            manager.write("does-not-exist", "ls")

    async def test_aclose_kills_everything(self, manager: PTYManager) -> None:
        sessions = [manager.registry.get(manager.create()["session_id"]) for _ in range(3)]
        await manager.aclose()
        assert manager.list() == []
        for s in sessions:
            assert s.status == PTYStatus.KILLED
            assert s._proc is not None and s._proc.poll() is not None


class TestRootMode:
    async def test_root_session_descriptor(self, manager: PTYManager) -> None:
        info = manager.create(root_password="secret")
        assert info["mode"] == "root"
        assert info["shell"] == "/bin/sh"
        session = manager.registry.get(info["session_id"])
        assert session.command == [manager.config.sudo, "-S", "-p", "", "/bin/sh"]

    async def test_password_precedes_commands(self, manager: PTYManager) -> None:
        sid = manager.create(root_password="secret")["session_id"]
        manager.write(sid, 'echo "after"pw')
        out = await read_until(manager, sid, "afterpw\r\n")
        # The launcher's first line of input was the password, not the command
        assert "GOT-secret" in out
        assert out.index("GOT-secret") < out.index("afterpw\r\n")

    async def test_wrong_password_exits_session(self, manager: PTYManager) -> None:
        sid = manager.create(root_password="wrong")["session_id"]
        out = await read_until(manager, sid, EXIT_MARKER)
        assert "incorrect password" in out
        assert sid in manager.list()

    async def test_describe(self, manager: PTYManager) -> None:
        sid = manager.create(root_password="secret")["session_id"]
        desc = manager.describe(sid)
        assert desc["mode"] == "root"
        assert desc["status"] == "running"
        assert isinstance(desc["pid"], int)
