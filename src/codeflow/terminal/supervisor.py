"""Process supervisor for commands spawned by terminal sessions.

Spawns one external command, pumps its stdout and stderr back through
callbacks, and reaps it. The supervisor knows nothing about sessions; the
dispatcher wires the callbacks to a session's output stream.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import signal
from collections.abc import Callable, Mapping, Sequence

from codeflow.terminal.errors import CommandNotFound

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096

OutputCallback = Callable[[str], None]
ExitCallback = Callable[["ProcessHandle", int], None]


class ProcessHandle:
    """A running child process and the task that supervises it.

    Output callbacks fire once per chunk read from the corresponding
    stream. ``on_exit`` fires exactly once, after both streams reached EOF
    and the process has been reaped, so it always follows the last chunk.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        command: str,
        on_stdout: OutputCallback,
        on_stderr: OutputCallback,
        on_exit: ExitCallback,
    ) -> None:
        self._process = process
        self._command = command
        self._on_stdout = on_stdout
        self._on_stderr = on_stderr
        self._on_exit = on_exit
        self._detached = False
        self._task: asyncio.Task[None] | None = None

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def command(self) -> str:
        return self._command

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def detached(self) -> bool:
        return self._detached

    def start(self) -> None:
        self._task = asyncio.create_task(self._supervise())

    def add_done_callback(self, fn: Callable[[ProcessHandle], None]) -> None:
        """Call ``fn(handle)`` once supervision finished, detached or not."""
        if self._task is None:
            raise RuntimeError("ProcessHandle has not been started")
        self._task.add_done_callback(lambda _task: fn(self))

    def detach(self) -> None:
        """Stop delivering callbacks. The child is still drained and reaped."""
        self._detached = True

    def kill(self, sig: int = signal.SIGTERM) -> None:
        """Send a signal to the child. Safe to call after it exited."""
        if self._process.returncode is not None:
            return
        try:
            self._process.send_signal(sig)
            logger.debug("Sent signal %d to %s (pid=%d)", sig, self._command, self.pid)
        except ProcessLookupError:
            pass

    def interrupt(self) -> None:
        self.kill(signal.SIGINT)

    async def wait(self) -> int:
        """Wait until the child exited and all output was delivered."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return await self._process.wait()

    async def _supervise(self) -> None:
        stdout, stderr = self._process.stdout, self._process.stderr
        if stdout is None or stderr is None:
            raise RuntimeError(f"{self._command} was started without output pipes")
        await asyncio.gather(
            self._pump(stdout, self._on_stdout),
            self._pump(stderr, self._on_stderr),
        )
        returncode = await self._process.wait()
        logger.info("%s (pid=%d) exited with %d", self._command, self.pid, returncode)
        if not self._detached:
            self._on_exit(self, returncode)

    async def _pump(self, stream: asyncio.StreamReader, callback: OutputCallback) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text and not self._detached:
                callback(text)
        tail = decoder.decode(b"", final=True)
        if tail and not self._detached:
            callback(tail)


class ProcessSupervisor:
    """Spawns and tracks child processes."""

    def __init__(self) -> None:
        self._handles: set[ProcessHandle] = set()

    def __len__(self) -> int:
        return len(self._handles)

    async def spawn(
        self,
        command: str,
        args: Sequence[str],
        cwd: str,
        env: Mapping[str, str],
        on_stdout: OutputCallback,
        on_stderr: OutputCallback,
        on_exit: ExitCallback,
    ) -> ProcessHandle:
        """Spawn ``command`` with ``args`` and start pumping its output.

        Raises:
            CommandNotFound: If the command cannot be located or executed.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=cwd,
                env=dict(env),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug("Cannot execute %s: %s", command, e)
            raise CommandNotFound(command) from e

        handle = ProcessHandle(process, command, on_stdout, on_stderr, on_exit)
        self._handles.add(handle)
        handle.start()
        handle.add_done_callback(self._handles.discard)
        logger.info("Spawned %s (pid=%d) in %s", command, process.pid, cwd)
        return handle

    def kill_all(self) -> None:
        """Detach and terminate every live child."""
        for handle in list(self._handles):
            handle.detach()
            handle.kill()
        self._handles.clear()
