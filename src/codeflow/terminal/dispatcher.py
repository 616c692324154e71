"""Command dispatcher: built-in emulation or spawned process.

Given a completed line, runs a built-in against the session or hands the
command to the process supervisor, and normalizes both paths into the
session's output stream. Every path ends with a prompt: built-ins and
spawn failures emit it immediately, spawned commands emit it on exit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from codeflow.terminal import ansi
from codeflow.terminal.builtins import BuiltinTable
from codeflow.terminal.errors import CommandAlreadyRunning, CommandNotFound
from codeflow.terminal.supervisor import ProcessHandle, ProcessSupervisor

if TYPE_CHECKING:
    from codeflow.terminal.session import Session

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Routes command lines for every session of one registry."""

    def __init__(
        self,
        supervisor: ProcessSupervisor,
        builtins: BuiltinTable | None = None,
    ) -> None:
        self._supervisor = supervisor
        self._builtins = builtins or BuiltinTable()

    @property
    def supervisor(self) -> ProcessSupervisor:
        return self._supervisor

    async def dispatch(self, session: Session, line: str) -> None:
        """Run one trimmed, non-empty command line for ``session``.

        Raises:
            CommandAlreadyRunning: If the session still has an active child.
        """
        argv = line.split()
        if not argv:
            session.emit_prompt()
            return

        handler = self._builtins.lookup(argv)
        if handler is not None:
            output = await handler(session, argv[1:])
            session.emit(output)
            session.emit_prompt()
            return

        if session.active_child is not None:
            raise CommandAlreadyRunning(session.id, session.active_child.pid)

        command, args = argv[0], argv[1:]

        def on_stdout(data: str) -> None:
            session.emit(data)

        def on_stderr(data: str) -> None:
            session.emit(ansi.alert(data))

        def on_exit(handle: ProcessHandle, returncode: int) -> None:
            if session.active_child is handle:
                session.active_child = None
            logger.debug("[%s] %s finished with %d", session.id, handle.command, returncode)
            session.emit_prompt()

        try:
            handle = await self._supervisor.spawn(
                command,
                args,
                cwd=session.working_directory,
                env=session.environment,
                on_stdout=on_stdout,
                on_stderr=on_stderr,
                on_exit=on_exit,
            )
        except CommandNotFound as e:
            logger.info("[%s] %s", session.id, e)
            session.emit(ansi.error_line(str(e)))
            session.emit_prompt()
            return

        if session.closed:
            # Destroyed while the spawn was in flight
            handle.detach()
            handle.kill()
            return
        session.active_child = handle
