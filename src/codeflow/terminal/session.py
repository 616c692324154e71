"""Terminal session state."""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol

from codeflow.domain.models import OutboundEvent, OutputEvent, SessionInfo
from codeflow.terminal import ansi

if TYPE_CHECKING:
    from codeflow.terminal.editor import LineEditor
    from codeflow.terminal.supervisor import ProcessHandle

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """What a session needs from the transport that owns it."""

    def send(self, event: OutboundEvent) -> None: ...


class Session:
    """One interactive shell context, addressed by ``id``.

    The session holds only a weak reference to its connection: the
    transport owns the connection lifecycle and the registry removes the
    session when the connection goes away. If the connection is collected
    before that, ``on_connection_lost(id)`` is called instead.
    """

    def __init__(
        self,
        connection: Connection,
        working_directory: str,
        environment: Mapping[str, str],
        shell: str = "bash",
        on_connection_lost: Callable[[str], None] | None = None,
    ) -> None:
        self.id = str(uuid.uuid4())
        self.shell = shell
        self.working_directory = working_directory
        self.environment: Mapping[str, str] = MappingProxyType(dict(environment))
        self.active_child: ProcessHandle | None = None
        self.editor: LineEditor | None = None
        self.cols = 80
        self.rows = 24
        self._on_connection_lost = on_connection_lost
        self._connection_ref = weakref.ref(connection, self._connection_gone)
        self._closed = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def connection(self) -> Connection | None:
        return self._connection_ref()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_running(self) -> bool:
        return self.active_child is not None

    @property
    def pending_line(self) -> str:
        return self.editor.buffer if self.editor is not None else ""

    def owned_by(self, connection: Connection) -> bool:
        return self._connection_ref() is connection

    def _connection_gone(self, _ref: weakref.ref[Connection]) -> None:
        if self._closed or self._on_connection_lost is None:
            return
        logger.info("[%s] Connection collected without cleanup", self.id)
        self._on_connection_lost(self.id)

    def prompt(self) -> str:
        return ansi.prompt(self.working_directory)

    def send(self, event: OutboundEvent) -> bool:
        """Put an event on the owning connection unless the session is closed."""
        if self._closed:
            return False
        connection = self._connection_ref()
        if connection is None:
            return False
        connection.send(event)
        return True

    def emit(self, data: str) -> bool:
        """Send an ``output`` event tagged with this session's id."""
        if not data:
            return False
        return self.send(OutputEvent(terminal_id=self.id, data=data))

    def emit_prompt(self) -> bool:
        return self.emit(self.prompt())

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        """Run ``callback()`` after ``delay`` seconds unless the session closes first."""

        async def _delayed() -> None:
            await asyncio.sleep(delay)
            if not self._closed:
                callback()

        task = asyncio.create_task(_delayed())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def close(self) -> None:
        """Stop all output and terminate the active child, if any."""
        if self._closed:
            return
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        if self.active_child is not None:
            self.active_child.detach()
            self.active_child.kill()
            logger.info("[%s] Terminated %s (pid=%d)", self.id, self.active_child.command,
                        self.active_child.pid)
            self.active_child = None

    def info(self) -> SessionInfo:
        return SessionInfo(
            terminal_id=self.id,
            shell=self.shell,
            cwd=self.working_directory,
            running=self.is_running,
            cols=self.cols,
            rows=self.rows,
        )
