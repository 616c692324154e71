"""Shell built-ins emulated in-process: ``cd``, ``pwd`` and ``ls``.

Built-ins never spawn a process. Each handler takes the session and the
argument list and returns the text to emit before the prompt. Filesystem
lookups run in the default executor so the event loop never blocks.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from codeflow.terminal import ansi
from codeflow.terminal.errors import NotADirectory, PathNotFound, TerminalError

if TYPE_CHECKING:
    from codeflow.terminal.session import Session

logger = logging.getLogger(__name__)

BuiltinHandler = Callable[["Session", Sequence[str]], Awaitable[str]]

# Flag sets for which ``ls`` is emulated; anything else runs the real ls
LS_EMULATED_ARGS = ((), ("-la",))


def resolve_directory(cwd: str, target: str, home: str | None = None) -> str:
    """Resolve ``target`` against ``cwd`` and check it is a directory.

    Raises:
        PathNotFound: If the resolved path does not exist.
        NotADirectory: If it exists but is not a directory.
    """
    if target == "~" or target.startswith("~/"):
        target = (home or os.path.expanduser("~")) + target[1:]
    path = os.path.normpath(os.path.join(cwd, target))
    if not os.path.exists(path):
        raise PathNotFound(path)
    if not os.path.isdir(path):
        raise NotADirectory(path)
    return path


def list_directory(path: str) -> str:
    """Render the entries of ``path`` on one line, directories marked."""
    entries = []
    with os.scandir(path) as it:
        for entry in sorted(it, key=lambda e: e.name):
            if entry.is_dir():
                entries.append(ansi.directory_entry(entry.name))
            else:
                entries.append(entry.name)
    return "  ".join(entries) + ansi.NEWLINE


async def _run_blocking(fn: Callable[..., str], *args: str | None) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


async def cd(session: Session, args: Sequence[str]) -> str:
    home = session.environment.get("HOME")
    target = args[0] if args else (home or session.working_directory)
    try:
        path = await _run_blocking(resolve_directory, session.working_directory, target, home)
    except TerminalError as e:
        logger.debug("[%s] %s", session.id, e)
        return ansi.error_line(str(e))
    session.working_directory = path
    return ""


async def pwd(session: Session, args: Sequence[str]) -> str:
    return session.working_directory + ansi.NEWLINE


async def ls(session: Session, args: Sequence[str]) -> str:
    try:
        return await _run_blocking(list_directory, session.working_directory)
    except OSError as e:
        return ansi.error_line(f"ls: {e.strerror or e}")


class BuiltinTable:
    """Maps command lines to in-process handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, BuiltinHandler] = {
            "cd": cd,
            "pwd": pwd,
            "ls": ls,
        }

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def lookup(self, argv: Sequence[str]) -> BuiltinHandler | None:
        """Return the handler for a split command line, or None to spawn."""
        if not argv:
            return None
        name, args = argv[0], tuple(argv[1:])
        if name == "pwd" and args:
            return None
        if name == "ls" and args not in LS_EMULATED_ARGS:
            return None
        return self._handlers.get(name)
