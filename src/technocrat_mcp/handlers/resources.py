"""
Built-in MCP resources.

Exposes: info://server
"""

import json

from .. import PROTOCOL_VERSION, SERVER_NAME, __version__
from ..models import CapabilityKind, ResourceDefinition
from ..registry import Registry


SERVER_INFO = ResourceDefinition(
    uri="info://server",
    name="Server Information",
    description="Information about the Technocrat MCP server",
    mimeType="application/json"
)


def register_resources(registry: Registry) -> None:
    """Register the built-in resources.

    The server information reader reports the capability counts as they
    stand when it is first read, which is after the registry is frozen.
    """

    def read_server_info(uri: str) -> str:
        return json.dumps({
            "name": SERVER_NAME,
            "version": __version__,
            "protocolVersion": PROTOCOL_VERSION,
            "description": "Technocrat MCP server, a Spec Driven Development Framework.",
            "capabilities": {
                "tools": registry.count(CapabilityKind.TOOL),
                "resources": registry.count(CapabilityKind.RESOURCE),
                "prompts": registry.count(CapabilityKind.PROMPT),
            },
        }, indent=2)

    registry.register_resource(SERVER_INFO, read_server_info)
