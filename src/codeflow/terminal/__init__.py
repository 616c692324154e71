"""Terminal session engine for codeflow.

Accepts many independent sessions, keeps per-session line state,
emulates a few shell built-ins and supervises spawned commands.

Public API:
    SessionRegistry -- owns live sessions and routes lifecycle events
    Session -- one interactive shell context
    CommandDispatcher -- built-in vs. spawned command routing
    ProcessSupervisor -- spawns and reaps external commands
"""

from codeflow.terminal.builtins import BuiltinTable
from codeflow.terminal.dispatcher import CommandDispatcher
from codeflow.terminal.editor import EditorState, LineEditor
from codeflow.terminal.errors import (
    CommandAlreadyRunning,
    CommandNotFound,
    MalformedEnvelope,
    NotADirectory,
    PathNotFound,
    SessionNotFound,
    TerminalError,
)
from codeflow.terminal.registry import SessionRegistry
from codeflow.terminal.session import Connection, Session
from codeflow.terminal.supervisor import ProcessHandle, ProcessSupervisor

__all__ = [
    "BuiltinTable",
    "CommandAlreadyRunning",
    "CommandDispatcher",
    "CommandNotFound",
    "Connection",
    "EditorState",
    "LineEditor",
    "MalformedEnvelope",
    "NotADirectory",
    "PathNotFound",
    "ProcessHandle",
    "ProcessSupervisor",
    "Session",
    "SessionNotFound",
    "SessionRegistry",
    "TerminalError",
]
