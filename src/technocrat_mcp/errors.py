"""
MCP Error Taxonomy

Every failure the engine or a transport can report is one of the classes
below. Each class knows how it is rendered on both wires: the taxonomy code
and HTTP status used by the HTTP transport, and the JSON-RPC error code
used by the stdio transport.
"""

from typing import Any, Dict, Optional

# JSON-RPC 2.0 reserved error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class MCPError(Exception):
    """Base class for errors surfaced to MCP clients."""

    code = "InternalError"
    http_status = 500
    jsonrpc_code = INTERNAL_ERROR

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        body = {"code": self.code, "message": self.message}
        if self.data:
            body["data"] = self.data
        return body

    def to_jsonrpc(self) -> Dict[str, Any]:
        data = {"type": self.code}
        if self.data:
            data.update(self.data)
        return {"code": self.jsonrpc_code, "message": self.message, "data": data}


class DuplicateName(MCPError):
    """A capability with the same key is already registered for its kind."""

    code = "DuplicateName"

    def __init__(self, kind: str, name: str):
        super().__init__(
            f"{kind} '{name}' is already registered",
            data={"kind": kind, "name": name},
        )
        self.kind = kind
        self.name = name


class NotFound(MCPError):
    """Registry miss."""

    code = "NotFound"
    http_status = 404
    jsonrpc_code = METHOD_NOT_FOUND

    def __init__(self, kind: str, name: str, message: Optional[str] = None):
        super().__init__(
            message or f"{kind} not found: {name}",
            data={"kind": kind, "name": name},
        )
        self.kind = kind
        self.name = name


class UnknownCapability(NotFound):
    """The caller referenced a capability that does not exist."""

    code = "UnknownCapability"


class InvalidArguments(MCPError):
    """Arguments do not satisfy the capability's declared shape."""

    code = "InvalidArguments"
    http_status = 400
    jsonrpc_code = INVALID_PARAMS

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ):
        data = {}
        if field is not None:
            data["field"] = field
        if expected is not None:
            data["expected"] = expected
        if actual is not None:
            data["actual"] = actual
        super().__init__(message, data=data or None)
        self.field = field
        self.expected = expected
        self.actual = actual


class HandlerError(MCPError):
    """The capability's own logic failed; the message is passed through."""

    code = "HandlerError"
    http_status = 500
    jsonrpc_code = INTERNAL_ERROR


class ParseError(MCPError):
    """Malformed wire message; never reaches the engine."""

    code = "ParseError"
    http_status = 400
    jsonrpc_code = PARSE_ERROR


class InvalidRequest(MCPError):
    """Well-formed JSON that is not a JSON-RPC 2.0 request object."""

    code = "InvalidRequest"
    http_status = 400
    jsonrpc_code = INVALID_REQUEST

    def __init__(self, message: str, request_id: Any = None):
        super().__init__(message)
        self.request_id = request_id


class MethodNotFound(MCPError):
    """No operation is mapped to the requested method name."""

    code = "MethodNotFound"
    http_status = 404
    jsonrpc_code = METHOD_NOT_FOUND

    def __init__(self, method: Any):
        super().__init__(f"Method not found: {method}", data={"method": method})
        self.method = method


class RegistryFrozenError(RuntimeError):
    """Raised when registering after a transport has started."""
