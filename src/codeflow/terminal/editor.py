"""Per-session line editor.

Turns raw keystroke fragments into completed command lines. Input is
consumed one character at a time, so a single message may carry a whole
line (``"pwd\\r"``) or a paste spanning several commands.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from codeflow.terminal import ansi
from codeflow.terminal.errors import CommandAlreadyRunning

if TYPE_CHECKING:
    from codeflow.terminal.dispatcher import CommandDispatcher
    from codeflow.terminal.session import Session

logger = logging.getLogger(__name__)

CARRIAGE_RETURN = "\r"
INTERRUPT = "\x03"  # Ctrl+C
BACKSPACE_KEYS = ("\x7f", "\b")
ESCAPE = "\x1b"


class EditorState(str, enum.Enum):
    IDLE = "idle"  # Waiting for a command line
    RUNNING = "running"  # An external command is active


class LineEditor:
    """State machine holding the line typed since the last Enter or Ctrl-C.

    While a command is running only Ctrl-C is accepted; any other input is
    rejected with :class:`CommandAlreadyRunning`. Ctrl-C never kills the
    running command unless ``forward_interrupt`` is set, in which case the
    child receives SIGINT.
    """

    def __init__(
        self,
        session: Session,
        dispatcher: CommandDispatcher,
        forward_interrupt: bool = False,
    ) -> None:
        self._session = session
        self._dispatcher = dispatcher
        self._forward_interrupt = forward_interrupt
        self._buffer: list[str] = []
        self._echo: list[str] = []
        # None outside an escape sequence, else the introducer seen so far
        self._escape: str | None = None

    @property
    def buffer(self) -> str:
        return "".join(self._buffer)

    @property
    def state(self) -> EditorState:
        if self._session.active_child is not None:
            return EditorState.RUNNING
        return EditorState.IDLE

    async def feed(self, text: str) -> None:
        """Process a fragment of raw input.

        Raises:
            CommandAlreadyRunning: If input other than Ctrl-C arrived while
                a command was running. Characters before and after the
                rejected ones are still processed.
        """
        rejected = 0
        for char in text:
            if self._consume_escape(char):
                continue
            if char == INTERRUPT:
                self._interrupt()
                continue
            if char == ESCAPE:
                self._escape = ""
                continue
            if self.state is EditorState.RUNNING:
                rejected += 1
                continue
            if char == CARRIAGE_RETURN:
                await self._submit()
            elif char in BACKSPACE_KEYS:
                self._backspace()
            elif ord(char) >= 0x20:
                self._buffer.append(char)
                self._echo.append(char)
        self._flush_echo()

        if rejected:
            child = self._session.active_child
            logger.debug("[%s] Rejected %d chars while running", self._session.id, rejected)
            raise CommandAlreadyRunning(self._session.id, child.pid if child else None)

    def _consume_escape(self, char: str) -> bool:
        """Swallow CSI (``ESC [ ... final``) and SS3 (``ESC O x``) sequences."""
        if self._escape is None:
            return False
        # Control keys end the sequence and keep their usual meaning
        if ord(char) < 0x20 or char in BACKSPACE_KEYS:
            self._escape = None
            return False
        if self._escape == "":
            if char in "[O":
                self._escape = char
                return True
            self._escape = None
            return False
        if self._escape == "[" and not 0x40 <= ord(char) <= 0x7E:
            return True
        self._escape = None
        return True

    def _flush_echo(self) -> None:
        if self._echo:
            self._session.emit("".join(self._echo))
            self._echo.clear()

    def _backspace(self) -> None:
        if not self._buffer:
            return
        self._flush_echo()
        self._buffer.pop()
        self._session.emit(ansi.ERASE)

    def _interrupt(self) -> None:
        self._flush_echo()
        self._buffer.clear()
        child = self._session.active_child
        if child is not None and self._forward_interrupt:
            child.interrupt()
        self._session.emit(ansi.NEWLINE + self._session.prompt())

    async def _submit(self) -> None:
        self._flush_echo()
        line = "".join(self._buffer).strip()
        self._buffer.clear()
        self._session.emit(ansi.NEWLINE)
        if not line:
            self._session.emit_prompt()
            return
        logger.debug("[%s] Command line: %s", self._session.id, line)
        await self._dispatcher.dispatch(self._session, line)
