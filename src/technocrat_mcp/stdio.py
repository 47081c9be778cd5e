"""
MCP Server - Stdio Transport

JSON-RPC 2.0 over newline-delimited frames on a pair of byte streams,
for clients that spawn the server as a child process.

Frames are read one at a time and each request is answered before the
next frame is read, so responses never interleave on the output stream.
A malformed frame gets an error response and the loop carries on; end of
input ends the loop normally.
"""

import asyncio
import json
import logging
import sys
from typing import Any, BinaryIO, Dict, Optional

from .engine import InvocationEngine
from .errors import HandlerError, InvalidRequest, MCPError, ParseError
from .registry import Registry

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


def success_response(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, error: MCPError) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_jsonrpc()}


class StdioServer:
    """MCP server bound to an input and an output byte stream."""

    def __init__(
        self,
        registry: Registry,
        instream: Optional[BinaryIO] = None,
        outstream: Optional[BinaryIO] = None,
    ):
        self.registry = registry
        self.engine = InvocationEngine(registry)
        self.instream = instream if instream is not None else sys.stdin.buffer
        self.outstream = outstream if outstream is not None else sys.stdout.buffer

    def decode_frame(self, line: bytes) -> Dict[str, Any]:
        """
        Decode one frame into a JSON-RPC request object.

        Raises:
            ParseError: Frame is not UTF-8 JSON
            InvalidRequest: JSON that is not a single JSON-RPC 2.0 request
        """
        try:
            message = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(f"Parse error: {e}")

        if isinstance(message, list):
            raise InvalidRequest("Invalid request: batch requests are not supported")
        if not isinstance(message, dict):
            raise InvalidRequest("Invalid request: expected a JSON object")
        if message.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequest("Invalid request: jsonrpc must be \"2.0\"", request_id=message.get("id"))
        if not isinstance(message.get("method"), str):
            raise InvalidRequest("Invalid request: missing method", request_id=message.get("id"))
        return message

    async def handle_frame(self, line: bytes) -> Optional[Dict[str, Any]]:
        """
        Process one frame and build its response.

        Returns:
            The JSON-RPC response, or None for notifications
        """
        try:
            message = self.decode_frame(line)
        except ParseError as e:
            logger.warning(f"Error parsing request: {e.message}")
            return error_response(None, e)
        except InvalidRequest as e:
            return error_response(e.request_id, e)

        method = message["method"]
        is_notification = "id" not in message
        request_id = message.get("id")

        try:
            result = await self.engine.handle(method, message.get("params"))
        except MCPError as e:
            if is_notification:
                logger.debug(f"Notification {method} failed: {e.message}")
                return None
            return error_response(request_id, e)
        except Exception as e:
            logger.error(f"Unhandled exception in {method}: {e}", exc_info=True)
            if is_notification:
                return None
            return error_response(request_id, HandlerError("Internal server error", {"exception": type(e).__name__}))

        if is_notification:
            return None
        return success_response(request_id, result)

    def write(self, response: Dict[str, Any]) -> None:
        frame = json.dumps(response, ensure_ascii=False).encode("utf-8") + b"\n"
        self.outstream.write(frame)
        self.outstream.flush()

    async def serve(self) -> None:
        """Run the read/dispatch/write loop until end of input."""
        self.registry.freeze()
        logger.info("MCP stdio server started")

        while True:
            line = await asyncio.to_thread(self.instream.readline)
            if not line:
                break
            if not line.strip():
                continue

            response = await self.handle_frame(line)
            if response is not None:
                self.write(response)

        logger.info("Input closed, MCP stdio server stopping")

    def run(self) -> None:
        asyncio.run(self.serve())
