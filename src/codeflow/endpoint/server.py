"""FastAPI server for the terminal session engine.

Serves the terminal WebSocket and two small HTTP routes used by agents
and health checks::

    GET  /health      -> {"status": "ok", "sessions": 2, "connections": 1}
    GET  /sessions    -> [{"terminalId": "...", "cwd": "/tmp", ...}]
    WS   /terminal    <- {"type": "create", "data": {"cwd": "/tmp"}}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, WebSocket

from codeflow.config.settings import Settings
from codeflow.domain.models import HealthResponse, SessionInfo
from codeflow.endpoint.gateway import TerminalGateway
from codeflow.terminal import ansi
from codeflow.terminal.registry import SessionRegistry

logger = logging.getLogger(__name__)


def build_registry(settings: Settings) -> SessionRegistry:
    """Create a session registry configured from ``settings.terminal``."""
    t = settings.terminal
    return SessionRegistry(
        shell_name=t.shell_name,
        default_cwd=t.default_cwd,
        banner=ansi.BANNER if t.banner_enabled else None,
        banner_delay=t.banner_delay,
        forward_interrupt=t.forward_interrupt,
        extra_env=t.extra_env,
    )


def create_app(
    settings: Settings | None = None,
    registry: SessionRegistry | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Server configuration. Defaults to ``Settings()``.
        registry: Optional pre-built registry (for testing).
    """
    settings = settings or Settings()
    if registry is None:
        registry = build_registry(settings)
    gateway = TerminalGateway(registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Terminal server started (ws path %s)", settings.server.websocket_path)
        yield
        app.state.registry.shutdown()
        logger.info("Terminal server stopped")

    app = FastAPI(
        title="codeflow terminal",
        description="Terminal session engine over WebSocket",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.registry = registry
    app.state.gateway = gateway

    @app.get("/health")
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="ok",
            sessions=len(app.state.registry),
            connections=app.state.gateway.connection_count,
        )

    @app.get("/sessions")
    async def list_sessions() -> list[SessionInfo]:
        return [session.info() for session in app.state.registry]

    @app.websocket(settings.server.websocket_path)
    async def terminal_socket(websocket: WebSocket) -> None:
        await app.state.gateway.serve(websocket)

    return app

