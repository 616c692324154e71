"""Tests for the ProcessSupervisor (spawns real, short-lived commands)."""

from __future__ import annotations

import os
import signal
from pathlib import Path

import pytest

from codeflow.terminal.errors import CommandNotFound
from codeflow.terminal.supervisor import ProcessHandle, ProcessSupervisor

ENV = {"PATH": os.environ.get("PATH", "/usr/bin:/bin")}


class Recorder:
    def __init__(self) -> None:
        self.log: list[tuple[str, object]] = []

    def stdout(self, data: str) -> None:
        self.log.append(("stdout", data))

    def stderr(self, data: str) -> None:
        self.log.append(("stderr", data))

    def exit(self, handle: ProcessHandle, returncode: int) -> None:
        self.log.append(("exit", returncode))

    def text(self, stream: str) -> str:
        return "".join(str(data) for kind, data in self.log if kind == stream)


async def _spawn(
    supervisor: ProcessSupervisor, recorder: Recorder, command: str, *args: str, cwd: str = "/",
) -> ProcessHandle:
    return await supervisor.spawn(
        command, args, cwd=cwd, env=ENV,
        on_stdout=recorder.stdout, on_stderr=recorder.stderr, on_exit=recorder.exit,
    )


class TestSpawn:
    @pytest.mark.asyncio
    async def test_stdout_then_exit(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        handle = await _spawn(supervisor, rec, "echo", "hello", "world")
        assert await handle.wait() == 0
        assert rec.text("stdout") == "hello world\n"
        assert rec.log[-1] == ("exit", 0)

    @pytest.mark.asyncio
    async def test_stderr_and_exit_code(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        handle = await _spawn(supervisor, rec, "ls", "/definitely-not-here-12345")
        returncode = await handle.wait()
        assert returncode != 0
        assert "definitely-not-here-12345" in rec.text("stderr")
        assert rec.log[-1] == ("exit", returncode)

    @pytest.mark.asyncio
    async def test_runs_in_cwd(self, supervisor: ProcessSupervisor, workspace: Path) -> None:
        rec = Recorder()
        handle = await _spawn(supervisor, rec, "pwd", cwd=str(workspace))
        await handle.wait()
        assert rec.text("stdout").strip() == os.path.realpath(workspace)

    @pytest.mark.asyncio
    async def test_stdin_is_closed(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        handle = await _spawn(supervisor, rec, "cat")
        assert await handle.wait() == 0
        assert rec.text("stdout") == ""

    @pytest.mark.asyncio
    async def test_unknown_command(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        with pytest.raises(CommandNotFound, match="zzzz12345: command not found"):
            await _spawn(supervisor, rec, "zzzz12345")
        assert rec.log == []
        assert len(supervisor) == 0

    @pytest.mark.asyncio
    async def test_handle_forgotten_after_exit(self, supervisor: ProcessSupervisor) -> None:
        handle = await _spawn(supervisor, Recorder(), "true")
        assert len(supervisor) == 1
        await handle.wait()
        assert len(supervisor) == 0
        assert not handle.is_running


class TestKill:
    @pytest.mark.asyncio
    async def test_kill_terminates(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        handle = await _spawn(supervisor, rec, "sleep", "30")
        handle.kill()
        assert await handle.wait() == -signal.SIGTERM
        assert rec.log == [("exit", -signal.SIGTERM)]

    @pytest.mark.asyncio
    async def test_kill_is_idempotent(self, supervisor: ProcessSupervisor) -> None:
        handle = await _spawn(supervisor, Recorder(), "true")
        await handle.wait()
        handle.kill()
        handle.kill()
        assert handle.returncode == 0

    @pytest.mark.asyncio
    async def test_interrupt_sends_sigint(self, supervisor: ProcessSupervisor) -> None:
        handle = await _spawn(supervisor, Recorder(), "sleep", "30")
        handle.interrupt()
        assert await handle.wait() == -signal.SIGINT

    @pytest.mark.asyncio
    async def test_detach_silences_callbacks(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        handle = await _spawn(supervisor, rec, "echo", "hidden")
        handle.detach()
        await handle.wait()
        assert rec.log == []
        assert handle.detached

    @pytest.mark.asyncio
    async def test_kill_all(self, supervisor: ProcessSupervisor) -> None:
        rec = Recorder()
        handles = [await _spawn(supervisor, rec, "sleep", "30") for _ in range(3)]
        supervisor.kill_all()
        assert len(supervisor) == 0
        for handle in handles:
            assert await handle.wait() == -signal.SIGTERM
        assert rec.log == []
