"""Network endpoint module for codeflow.

Exposes the terminal session engine to clients: a WebSocket gateway that
speaks the create/input/resize/destroy envelope protocol, plus HTTP
routes for health checks and session listing.
"""
