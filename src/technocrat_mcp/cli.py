#!/usr/bin/env python3
"""
Technocrat MCP command line.

    technocrat-mcp serve [--host HOST] [--port PORT] [--prefix /mcp/v1]
    technocrat-mcp stdio
    technocrat-mcp check [--url URL]
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import __version__
from .client import MCPClient, MCPClientError
from .config import Settings, normalize_prefix
from .errors import DuplicateName

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    # stderr only: stdout carries protocol frames in stdio mode
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    from .handlers import build_registry
    from .server import run

    if args.host:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.prefix is not None:
        settings.route_prefix = normalize_prefix(args.prefix)

    registry = build_registry(settings)
    run(registry, settings)
    return 0


def cmd_stdio(args: argparse.Namespace, settings: Settings) -> int:
    from .handlers import build_registry
    from .stdio import StdioServer

    registry = build_registry(settings)
    StdioServer(registry).run()
    return 0


def cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    client = MCPClient(args.url or settings.server_url)
    prefix = normalize_prefix(args.prefix) if args.prefix is not None else settings.route_prefix
    try:
        health = client.health()
        info = client.initialize(prefix)
    except MCPClientError as e:
        print(f"MCP server check failed: {e}")
        return 1

    print(f"Server: {info['serverInfo']['name']} {info['serverInfo']['version']} ({health.get('status')})")
    print(f"Protocol: {info['protocolVersion']}")
    for kind in ("tools", "resources", "prompts"):
        print(f"  {kind}: {info['capabilities'][kind]['count']}")
    if args.json:
        print(json.dumps(info, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="technocrat-mcp",
        description="Technocrat Model Context Protocol server"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Logging level (default: MCP_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP transport")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("-p", "--port", type=int, help="Port to listen on")
    serve.add_argument("--prefix", help="Route prefix for MCP endpoints, e.g. /mcp/v1")
    serve.set_defaults(func=cmd_serve)

    stdio = subparsers.add_parser("stdio", help="Run the JSON-RPC transport on stdin/stdout")
    stdio.set_defaults(func=cmd_stdio)

    check = subparsers.add_parser("check", help="Check that a running HTTP server answers")
    check.add_argument("--url", help="Server base URL (default: MCP_SERVER_URL)")
    check.add_argument("--prefix", help="Route prefix the server was started with")
    check.add_argument("--json", action="store_true", help="Print the full initialize response")
    check.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()
    if args.log_level:
        settings.log_level = args.log_level.upper()
    configure_logging(settings.log_level)

    try:
        return args.func(args, settings)
    except DuplicateName as e:
        logger.error(f"Capability registration failed: {e}")
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0


if __name__ == "__main__":
    sys.exit(main())
