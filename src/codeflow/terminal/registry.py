"""Session registry: owns every live terminal session.

The registry is the only state shared across connections. All mutation
happens on the event loop thread, so inserts and removals of different
sessions never interleave partially.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping

from codeflow.domain.models import CreatedEvent, DestroyedEvent
from codeflow.terminal import ansi
from codeflow.terminal.dispatcher import CommandDispatcher
from codeflow.terminal.editor import LineEditor
from codeflow.terminal.errors import SessionNotFound, TerminalError
from codeflow.terminal.session import Connection, Session
from codeflow.terminal.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)

# Markers every session environment carries
SESSION_ENV_MARKERS = {
    "TERM": "xterm-256color",
    "COLORTERM": "truecolor",
    "CODEFLOW_TERMINAL": "1",
}


class SessionRegistry:
    """Creates, routes to and destroys terminal sessions.

    Example usage::

        registry = SessionRegistry()
        session = registry.create(connection, cwd="/tmp")
        await registry.route_input(session.id, "pwd\\r")
        registry.destroy(session.id)
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher | None = None,
        shell_name: str = "bash",
        default_cwd: str | None = None,
        banner: str | None = ansi.BANNER,
        banner_delay: float = 0.1,
        forward_interrupt: bool = False,
        extra_env: Mapping[str, str] | None = None,
    ) -> None:
        self._dispatcher = dispatcher or CommandDispatcher(ProcessSupervisor())
        self._shell_name = shell_name
        self._default_cwd = default_cwd
        self._banner = banner
        self._banner_delay = max(0.0, banner_delay)
        self._forward_interrupt = forward_interrupt
        self._extra_env = dict(extra_env or {})
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def get(self, session_id: str) -> Session:
        """Look up a live session.

        Raises:
            SessionNotFound: If no session has this id.
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None

    def owned_by(self, connection: Connection) -> list[Session]:
        return [s for s in self._sessions.values() if s.owned_by(connection)]

    def create(self, connection: Connection, cwd: str | None = None) -> Session:
        """Allocate a session for ``connection`` and announce it.

        Emits ``created`` immediately and the banner plus first prompt
        after the configured delay.
        """
        session = Session(
            connection,
            working_directory=self._resolve_cwd(cwd),
            environment=self._build_environment(),
            shell=self._shell_name,
            on_connection_lost=self._connection_lost,
        )
        session.editor = LineEditor(session, self._dispatcher, self._forward_interrupt)
        self._sessions[session.id] = session
        logger.info("[%s] Created terminal in %s", session.id, session.working_directory)

        session.send(CreatedEvent(
            terminal_id=session.id,
            shell=session.shell,
            cwd=session.working_directory,
        ))

        def _greet() -> None:
            session.emit((self._banner or "") + session.prompt())

        session.call_later(self._banner_delay, _greet)
        return session

    def destroy(self, session_id: str, notify: bool = True) -> bool:
        """Terminate and remove a session. Unknown ids are ignored.

        Removal, child termination and the ``destroyed`` event happen
        without yielding to the loop, so nothing else for this id can be
        emitted afterwards.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            logger.debug("Destroy ignored for unknown terminal %s", session_id)
            return False
        connection = session.connection
        session.close()
        if notify and connection is not None:
            connection.send(DestroyedEvent(terminal_id=session_id))
        logger.info("[%s] Destroyed terminal", session_id)
        return True

    def resize(self, session_id: str, cols: int, rows: int) -> bool:
        """Record the client's terminal size. Unknown ids are ignored."""
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug("Resize ignored for unknown terminal %s", session_id)
            return False
        session.cols = cols
        session.rows = rows
        return True

    async def route_input(self, session_id: str, text: str) -> None:
        """Forward raw input to the session's line editor.

        Raises:
            SessionNotFound: If no session has this id.
            CommandAlreadyRunning: If the session rejected the input.
        """
        session = self.get(session_id)
        if session.editor is None:
            raise TerminalError("Terminal has no line editor", session_id)
        await session.editor.feed(text)

    def close_connection(self, connection: Connection) -> int:
        """Destroy every session owned by a closed connection."""
        owned = self.owned_by(connection)
        for session in owned:
            self.destroy(session.id, notify=False)
        if owned:
            logger.info("Cleaned up %d terminal(s) after disconnect", len(owned))
        return len(owned)

    def _connection_lost(self, session_id: str) -> None:
        self.destroy(session_id, notify=False)

    def shutdown(self) -> None:
        """Destroy every session and kill any remaining child."""
        for session_id in list(self._sessions):
            self.destroy(session_id, notify=False)
        self._dispatcher.supervisor.kill_all()

    def _resolve_cwd(self, cwd: str | None) -> str:
        if cwd:
            path = os.path.abspath(os.path.expanduser(cwd))
            if os.path.isdir(path):
                return path
            logger.warning("Requested cwd %s is not a directory, using default", cwd)
        for candidate in (self._default_cwd, os.environ.get("HOME")):
            if candidate and os.path.isdir(candidate):
                return os.path.abspath(candidate)
        return os.getcwd()

    def _build_environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(SESSION_ENV_MARKERS)
        env.update(self._extra_env)
        return env
