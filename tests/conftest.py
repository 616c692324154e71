"""Shared test fixtures for the codeflow test suite.

Provides a recording connection that captures outbound events, a
registry configured for fast tests (no banner delay), and a small
directory tree to run built-ins against.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from codeflow.domain.models import EventType, OutboundEvent
from codeflow.terminal.dispatcher import CommandDispatcher
from codeflow.terminal.registry import SessionRegistry
from codeflow.terminal.session import Session
from codeflow.terminal.supervisor import ProcessSupervisor


class RecordingConnection:
    """Stands in for a transport connection and keeps every event sent."""

    def __init__(self) -> None:
        self.id = "test-conn"
        self.events: list[OutboundEvent] = []

    def send(self, event: OutboundEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[OutboundEvent]:
        return [e for e in self.events if e.type is event_type]

    def output(self, terminal_id: str | None = None) -> str:
        """Concatenated ``output`` data, optionally for one terminal."""
        return "".join(
            e.data  # type: ignore[attr-defined]
            for e in self.of_type(EventType.OUTPUT)
            if terminal_id is None or e.terminal_id == terminal_id  # type: ignore[attr-defined]
        )

    def clear(self) -> None:
        self.events.clear()


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Filesystem Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A directory with one subdirectory and one file."""
    (tmp_path / "src").mkdir()
    (tmp_path / "README.md").write_text("hello\n")
    return tmp_path


# ---------------------------------------------------------------------------
# Engine Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settle():
    """Coroutine function that lets scheduled tasks (banner, callbacks) run."""
    return _settle


@pytest.fixture
def make_connection() -> type[RecordingConnection]:
    return RecordingConnection


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def supervisor() -> ProcessSupervisor:
    return ProcessSupervisor()


@pytest.fixture
def dispatcher(supervisor: ProcessSupervisor) -> CommandDispatcher:
    return CommandDispatcher(supervisor)


@pytest.fixture
def registry(dispatcher: CommandDispatcher, workspace: Path) -> SessionRegistry:
    """A registry with no banner text and no banner delay."""
    return SessionRegistry(
        dispatcher=dispatcher,
        default_cwd=str(workspace),
        banner=None,
        banner_delay=0,
    )


@pytest.fixture
def session(connection: RecordingConnection, workspace: Path) -> Session:
    """A bare session without an editor, for dispatcher-level tests."""
    return Session(connection, str(workspace), {"PATH": "/usr/bin:/bin", "HOME": str(workspace)})
