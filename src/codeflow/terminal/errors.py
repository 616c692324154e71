"""Exception hierarchy for the terminal session engine.

Every condition raised here is recoverable: the gateway turns it into an
``error`` event or the dispatcher renders it into the session's output
stream. None of them ever terminates the server or a sibling session.
"""

from __future__ import annotations


class TerminalError(Exception):
    """Base class for terminal engine errors."""

    def __init__(self, message: str, terminal_id: str | None = None) -> None:
        super().__init__(message)
        self.terminal_id = terminal_id


class SessionNotFound(TerminalError):
    """Raised when an operation references an unknown terminal id."""

    def __init__(self, terminal_id: str) -> None:
        super().__init__(f"Terminal not found: {terminal_id}", terminal_id=terminal_id)


class CommandAlreadyRunning(TerminalError):
    """Raised when input other than Ctrl-C arrives while a command runs."""

    def __init__(self, terminal_id: str, pid: int | None = None) -> None:
        detail = f" (pid {pid})" if pid is not None else ""
        super().__init__(
            f"A command is already running in terminal {terminal_id}{detail}",
            terminal_id=terminal_id,
        )
        self.pid = pid


class MalformedEnvelope(TerminalError):
    """Raised when an inbound message cannot be parsed or validated."""


class PathNotFound(TerminalError):
    """Raised by ``cd`` when the target path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"cd: no such file or directory: {path}")
        self.path = path


class NotADirectory(TerminalError):
    """Raised by ``cd`` when the target exists but is not a directory."""

    def __init__(self, path: str) -> None:
        super().__init__(f"cd: not a directory: {path}")
        self.path = path


class CommandNotFound(TerminalError):
    """Raised by the supervisor when a command cannot be executed."""

    def __init__(self, command: str) -> None:
        super().__init__(f"{command}: command not found")
        self.command = command
