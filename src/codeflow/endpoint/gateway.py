"""WebSocket transport gateway for terminal sessions.

Accepts a connection, parses each inbound envelope, calls into the
session registry, and writes outbound events back in order through a
per-connection queue. Faults are caught per message: a bad message yields
an ``error`` event and the connection stays open.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from codeflow.domain.models import (
    PAYLOAD_MODELS,
    ConnectedEvent,
    CreatePayload,
    DestroyPayload,
    Envelope,
    ErrorEvent,
    InputPayload,
    MessageType,
    OutboundEvent,
    ResizePayload,
)
from codeflow.terminal.errors import MalformedEnvelope, SessionNotFound, TerminalError
from codeflow.terminal.registry import SessionRegistry
from codeflow.terminal.session import Session

logger = logging.getLogger(__name__)

GREETING = "Terminal server connected"


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_envelope(raw: str | bytes) -> tuple[MessageType, BaseModel]:
    """Parse and validate one inbound message.

    Raises:
        MalformedEnvelope: If the message is not valid JSON, has an unknown
            type, or its payload lacks the fields the type requires.
    """
    try:
        envelope = Envelope.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedEnvelope(f"Malformed message: {_describe(e)}") from e

    data = envelope.data or {}
    try:
        payload = PAYLOAD_MODELS[envelope.type].model_validate(data)
    except ValidationError as e:
        terminal_id = data.get("terminalId")
        raise MalformedEnvelope(
            f"Invalid {envelope.type.value} payload: {_describe(e)}",
            terminal_id=terminal_id if isinstance(terminal_id, str) else None,
        ) from e
    return envelope.type, payload


class WebSocketConnection:
    """Outbound side of one client connection.

    ``send`` never blocks: events go onto a FIFO drained by a single
    writer task, so events keep the order they were produced in.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.id = uuid.uuid4().hex[:8]
        self._websocket = websocket
        self._queue: asyncio.Queue[OutboundEvent | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: OutboundEvent) -> None:
        if self._closed:
            logger.debug("[%s] Dropped %s event on closed connection", self.id, event.type.value)
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def run_writer(self) -> None:
        """Write queued events until the connection closes."""
        while True:
            event = await self._queue.get()
            if event is None:
                break
            try:
                await self._websocket.send_json(event.to_message())
            except Exception as e:
                logger.debug("[%s] Send failed, stopping writer: %s", self.id, e)
                self._closed = True
                break


class TerminalGateway:
    """Binds WebSocket connections to a :class:`SessionRegistry`."""

    def __init__(self, registry: SessionRegistry, greeting: str = GREETING) -> None:
        self._registry = registry
        self._greeting = greeting
        self._connections: set[WebSocketConnection] = set()

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def serve(self, websocket: WebSocket) -> None:
        """Run one connection until the client disconnects."""
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        self._connections.add(connection)
        writer = asyncio.create_task(connection.run_writer())
        logger.info("[%s] Terminal WebSocket connected", connection.id)
        connection.send(ConnectedEvent(data=self._greeting))

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None and message.get("bytes") is not None:
                    raw = message["bytes"]
                if raw is None:
                    continue
                await self.handle_message(connection, raw)
        except WebSocketDisconnect:
            pass
        finally:
            removed = self._registry.close_connection(connection)
            self._connections.discard(connection)
            connection.close()
            await writer
            logger.info(
                "[%s] Terminal WebSocket disconnected (%d terminal(s) removed)",
                connection.id, removed,
            )

    async def handle_message(self, connection: WebSocketConnection, raw: str | bytes) -> None:
        """Process one inbound message; never raises."""
        try:
            message_type, payload = parse_envelope(raw)
            await self._dispatch(connection, message_type, payload)
        except TerminalError as e:
            logger.info("[%s] Terminal request failed: %s", connection.id, e)
            connection.send(ErrorEvent(data=str(e), terminal_id=e.terminal_id))
        except Exception as e:
            logger.exception("[%s] Unhandled error processing terminal message", connection.id)
            connection.send(ErrorEvent(data=f"Internal error: {e}"))

    async def _dispatch(
        self,
        connection: WebSocketConnection,
        message_type: MessageType,
        payload: BaseModel,
    ) -> None:
        if isinstance(payload, CreatePayload):
            self._registry.create(connection, cwd=payload.cwd)

        elif isinstance(payload, InputPayload):
            self._owned(connection, payload.terminal_id)
            await self._registry.route_input(payload.terminal_id, payload.input)

        elif isinstance(payload, ResizePayload):
            if self._owned_or_none(connection, payload.terminal_id) is not None:
                self._registry.resize(payload.terminal_id, payload.cols, payload.rows)

        elif isinstance(payload, DestroyPayload):
            if self._owned_or_none(connection, payload.terminal_id) is not None:
                self._registry.destroy(payload.terminal_id)

        else:
            raise MalformedEnvelope(f"Unsupported message type: {message_type.value}")

    def _owned_or_none(self, connection: WebSocketConnection, terminal_id: str) -> Session | None:
        if terminal_id not in self._registry:
            return None
        session = self._registry.get(terminal_id)
        return session if session.owned_by(connection) else None

    def _owned(self, connection: WebSocketConnection, terminal_id: str) -> Session:
        """Sessions of other connections are invisible to this one."""
        session = self._owned_or_none(connection, terminal_id)
        if session is None:
            raise SessionNotFound(terminal_id)
        return session
