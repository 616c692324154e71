"""Core domain models for the codeflow terminal engine.

These models describe the messages crossing the WebSocket boundary:
inbound envelopes from clients, the payload of each envelope type, and
the outbound events the engine emits. Field names are snake_case in
Python and camelCase on the wire (``terminal_id`` <-> ``terminalId``).
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MessageType(str, enum.Enum):
    """Type of an inbound envelope."""

    CREATE = "create"
    INPUT = "input"
    RESIZE = "resize"
    DESTROY = "destroy"


class EventType(str, enum.Enum):
    """Type of an outbound event."""

    CONNECTED = "connected"
    CREATED = "created"
    OUTPUT = "output"
    DESTROYED = "destroyed"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Inbound envelope and payloads
# ---------------------------------------------------------------------------


class Envelope(BaseModel):
    """Typed wrapper around every inbound message.

    ``payload`` is accepted as an alias of ``data``.
    """

    type: MessageType
    data: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("data", "payload"),
    )


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreatePayload(_Payload):
    cwd: str | None = Field(default=None, description="Initial working directory")


class InputPayload(_Payload):
    terminal_id: str = Field(alias="terminalId")
    input: str = Field(description="Raw keystrokes, one or more characters")


class ResizePayload(_Payload):
    terminal_id: str = Field(alias="terminalId")
    cols: int = Field(gt=0)
    rows: int = Field(gt=0)


class DestroyPayload(_Payload):
    terminal_id: str = Field(alias="terminalId")


PAYLOAD_MODELS: dict[MessageType, type[_Payload]] = {
    MessageType.CREATE: CreatePayload,
    MessageType.INPUT: InputPayload,
    MessageType.RESIZE: ResizePayload,
    MessageType.DESTROY: DestroyPayload,
}


# ---------------------------------------------------------------------------
# Outbound events
# ---------------------------------------------------------------------------


class OutboundEvent(BaseModel):
    """Base class for events sent to clients."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: EventType

    def to_message(self) -> dict[str, Any]:
        """Serialize to the JSON-ready wire form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConnectedEvent(OutboundEvent):
    type: EventType = EventType.CONNECTED
    data: str


class CreatedEvent(OutboundEvent):
    type: EventType = EventType.CREATED
    terminal_id: str = Field(alias="terminalId")
    shell: str
    cwd: str


class OutputEvent(OutboundEvent):
    type: EventType = EventType.OUTPUT
    terminal_id: str = Field(alias="terminalId")
    data: str


class DestroyedEvent(OutboundEvent):
    type: EventType = EventType.DESTROYED
    terminal_id: str = Field(alias="terminalId")


class ErrorEvent(OutboundEvent):
    type: EventType = EventType.ERROR
    data: str
    terminal_id: str | None = Field(default=None, alias="terminalId")


# ---------------------------------------------------------------------------
# HTTP response models
# ---------------------------------------------------------------------------


class SessionInfo(BaseModel):
    """Snapshot of one live session, as listed by ``GET /sessions``."""

    model_config = ConfigDict(populate_by_name=True)

    terminal_id: str = Field(alias="terminalId")
    shell: str
    cwd: str
    running: bool = False
    cols: int = 80
    rows: int = 24


class HealthResponse(BaseModel):
    status: str = "ok"
    sessions: int = 0
    connections: int = 0
