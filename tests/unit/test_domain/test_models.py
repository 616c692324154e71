"""Tests for the wire models."""

from __future__ import annotations

from codeflow.domain.models import (
    ConnectedEvent,
    CreatedEvent,
    DestroyedEvent,
    ErrorEvent,
    InputPayload,
    OutputEvent,
    SessionInfo,
)


class TestOutboundEvents:
    def test_connected(self) -> None:
        assert ConnectedEvent(data="hi").to_message() == {"type": "connected", "data": "hi"}

    def test_created_uses_camel_case(self) -> None:
        event = CreatedEvent(terminal_id="t1", shell="bash", cwd="/tmp")
        assert event.to_message() == {
            "type": "created", "terminalId": "t1", "shell": "bash", "cwd": "/tmp",
        }

    def test_output(self) -> None:
        assert OutputEvent(terminal_id="t1", data="x").to_message() == {
            "type": "output", "terminalId": "t1", "data": "x",
        }

    def test_destroyed(self) -> None:
        assert DestroyedEvent(terminal_id="t1").to_message() == {
            "type": "destroyed", "terminalId": "t1",
        }

    def test_error_omits_missing_terminal_id(self) -> None:
        assert ErrorEvent(data="bad").to_message() == {"type": "error", "data": "bad"}
        assert ErrorEvent(data="bad", terminal_id="t1").to_message()["terminalId"] == "t1"


class TestPayloads:
    def test_input_accepts_wire_and_python_names(self) -> None:
        assert InputPayload.model_validate({"terminalId": "t", "input": "a"}) == InputPayload(
            terminal_id="t", input="a",
        )

    def test_session_info_dump(self) -> None:
        info = SessionInfo(terminal_id="t", shell="bash", cwd="/")
        assert info.model_dump(by_alias=True) == {
            "terminalId": "t", "shell": "bash", "cwd": "/", "running": False, "cols": 80, "rows": 24,
        }
