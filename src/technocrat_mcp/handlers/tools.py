"""
Built-in MCP tools.

Exposes: echo, system_info
"""

import json
import logging
from typing import Any, Dict

from .. import SERVER_NAME, __version__
from ..models import ToolDefinition
from ..registry import Registry
from ..workspace import detect_workspace_context

logger = logging.getLogger(__name__)


ECHO = ToolDefinition(
    name="echo",
    description="Echoes back the input message",
    inputSchema={
        "type": "object",
        "properties": {
            "message": {
                "type": "string",
                "description": "The message to echo"
            }
        },
        "required": ["message"]
    }
)

SYSTEM_INFO = ToolDefinition(
    name="system_info",
    description="Returns basic system information",
    inputSchema={
        "type": "object",
        "properties": {}
    }
)


def echo(arguments: Dict[str, Any]) -> str:
    return arguments["message"]


def system_info(arguments: Dict[str, Any]) -> str:
    """Report server identity and the workspace it was started in."""
    context = detect_workspace_context()
    logger.debug(f"system_info for workspace {context.root}")
    return json.dumps({
        "server": SERVER_NAME,
        "version": __version__,
        "status": "running",
        "workspace": context.model_dump(),
    }, indent=2)


def register_tools(registry: Registry) -> None:
    registry.register_tool(ECHO, echo)
    registry.register_tool(SYSTEM_INFO, system_info)
