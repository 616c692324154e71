"""Command-line interface for the codeflow terminal server.

Provides the main entry point for starting the WebSocket terminal
server and for inspecting the effective configuration.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="codeflow-terminal",
        description="Terminal session engine served over WebSocket",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/codeflow.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the terminal server")
    serve_parser.add_argument("--host", type=str, default=None, help="Override server.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server.port")
    serve_parser.add_argument(
        "--cwd", type=str, default=None,
        help="Default working directory for new terminals",
    )

    subparsers.add_parser("show-config", help="Print the effective configuration as YAML")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the codeflow-terminal CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from codeflow.config.settings import load_settings
    from codeflow.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        if args.host:
            settings.server.host = args.host
        if args.port:
            settings.server.port = args.port
        if args.cwd:
            settings.terminal.default_cwd = args.cwd

        logger.info(
            "Starting terminal server on %s:%d", settings.server.host, settings.server.port,
        )
        from codeflow.endpoint.server import create_app
        import uvicorn

        app = create_app(settings)
        uvicorn.run(
            app,
            host=settings.server.host,
            port=settings.server.port,
            log_level=settings.logging.level.lower(),
        )

    elif args.command == "show-config":
        yaml.safe_dump(settings.model_dump(mode="json"), sys.stdout, sort_keys=False)


if __name__ == "__main__":
    main()
