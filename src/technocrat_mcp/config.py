"""
Server configuration.

Values come from the environment (optionally a .env file) and can be
overridden by command line flags.
"""

import os
from typing import List, Optional

import dotenv
from pydantic import BaseModel, Field

dotenv.load_dotenv()


def _split(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def normalize_prefix(prefix: str) -> str:
    """Return "" or a prefix like "/mcp/v1" (leading slash, no trailing one)."""
    prefix = prefix.strip().strip("/")
    return f"/{prefix}" if prefix else ""


class Settings(BaseModel):
    """Runtime settings for both transports."""
    host: str = Field("0.0.0.0", description="HTTP bind address")
    port: int = Field(8080, ge=0, le=65535, description="HTTP port")
    log_level: str = Field("INFO", description="Logging level name")
    route_prefix: str = Field("", description="Prefix for MCP routes, e.g. /mcp/v1")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    commands_dir: Optional[str] = Field(None, description="Extra directory of command templates")
    server_url: str = Field("http://localhost:8080", description="Server URL used by the check command")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from MCP_* environment variables."""
        values = {}
        if os.getenv("MCP_HOST"):
            values["host"] = os.getenv("MCP_HOST")
        if os.getenv("MCP_PORT"):
            values["port"] = int(os.getenv("MCP_PORT"))
        if os.getenv("MCP_LOG_LEVEL"):
            values["log_level"] = os.getenv("MCP_LOG_LEVEL").upper()
        if os.getenv("MCP_ROUTE_PREFIX"):
            values["route_prefix"] = normalize_prefix(os.getenv("MCP_ROUTE_PREFIX"))
        if os.getenv("MCP_CORS_ORIGINS"):
            values["cors_origins"] = _split(os.getenv("MCP_CORS_ORIGINS"))
        if os.getenv("MCP_COMMANDS_DIR"):
            values["commands_dir"] = os.getenv("MCP_COMMANDS_DIR")
        if os.getenv("MCP_SERVER_URL"):
            values["server_url"] = os.getenv("MCP_SERVER_URL")
        return cls(**values)
