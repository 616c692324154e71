"""Domain models for codeflow.

Wire-level envelopes, payloads and events exchanged with terminal
clients. All models use Pydantic v2 for validation and serialization.
"""

from codeflow.domain.models import (
    PAYLOAD_MODELS,
    ConnectedEvent,
    CreatedEvent,
    CreatePayload,
    DestroyedEvent,
    DestroyPayload,
    Envelope,
    ErrorEvent,
    EventType,
    HealthResponse,
    InputPayload,
    MessageType,
    OutboundEvent,
    OutputEvent,
    ResizePayload,
    SessionInfo,
)

__all__ = [
    "PAYLOAD_MODELS",
    "ConnectedEvent",
    "CreatedEvent",
    "CreatePayload",
    "DestroyedEvent",
    "DestroyPayload",
    "Envelope",
    "ErrorEvent",
    "EventType",
    "HealthResponse",
    "InputPayload",
    "MessageType",
    "OutboundEvent",
    "OutputEvent",
    "ResizePayload",
    "SessionInfo",
]
