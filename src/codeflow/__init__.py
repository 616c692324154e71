"""codeflow -- Terminal session engine for a local development shell.

Serves interactive shell sessions to many concurrent clients over a
WebSocket. Each session keeps its own line state and working directory,
emulates ``cd``/``pwd``/``ls`` in-process, and streams the output of
spawned commands back in order.
"""

__version__ = "0.1.0"
