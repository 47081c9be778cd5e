"""
Technocrat Model Context Protocol (MCP) Server

This package implements an MCP server that exposes:
- Tools: side-effecting operations (echo, system_info, ...)
- Resources: read-only named data addressed by URI
- Prompts: parameterized message templates, including workflow commands

The same capability registry is served over two transports: an HTTP
request/response API and line-delimited JSON-RPC over stdio.
"""

__version__ = "0.5.1"

SERVER_NAME = "technocrat"
PROTOCOL_VERSION = "2024-11-05"
