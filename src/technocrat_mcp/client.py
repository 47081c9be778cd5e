"""
MCP HTTP Client

Thin client for the HTTP transport, used by ``technocrat-mcp check`` to
verify that a running server is reachable and what it advertises.
"""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class MCPClientError(Exception):
    """Raised when the server is unreachable or answers with an error."""

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class MCPClient:
    """Client for calling MCP server endpoints via HTTP."""

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if method == "GET":
                response = requests.get(url, timeout=self.timeout)
            else:
                response = requests.post(
                    url,
                    headers={"Content-Type": "application/json"},
                    json=payload or {},
                    timeout=self.timeout
                )
        except requests.exceptions.RequestException as e:
            logger.error(f"MCP server error calling {path}: {e}")
            raise MCPClientError(f"Failed to reach MCP server at {url}: {e}")

        try:
            data = response.json()
        except ValueError:
            raise MCPClientError(
                f"Non-JSON response from {url} (HTTP {response.status_code})",
                status_code=response.status_code
            )

        if response.status_code >= 400:
            error = data.get("error", {}) if isinstance(data, dict) else {}
            raise MCPClientError(
                error.get("message", f"HTTP {response.status_code}"),
                code=error.get("code"),
                status_code=response.status_code
            )
        return data

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def initialize(self, prefix: str = "") -> Dict[str, Any]:
        return self._request("POST", f"{prefix}/initialize")

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None, prefix: str = "") -> Dict[str, Any]:
        """Call a tool and return its outcome."""
        return self._request("POST", f"{prefix}/tools/call", {"name": name, "arguments": arguments or {}})
