"""
MCP Protocol Request/Response Models

This module defines Pydantic models for MCP protocol requests and responses
following the Model Context Protocol specification. The same models are
rendered by both the HTTP and the stdio transport.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List


class CapabilityKind(str, Enum):
    """The three registry partitions."""
    TOOL = "tool"
    RESOURCE = "resource"
    PROMPT = "prompt"


# ============================================================================
# Tool Models
# ============================================================================

class ToolDefinition(BaseModel):
    """MCP tool definition schema."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tool name/identifier")
    description: str = Field(..., description="Tool description")
    inputSchema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON schema for tool inputs"
    )

    @property
    def key(self) -> str:
        return self.name


class ToolListResponse(BaseModel):
    """Response for listing available tools."""
    tools: List[ToolDefinition] = Field(..., description="List of available tools")


class ToolCallRequest(BaseModel):
    """Request to call a tool."""
    name: str = Field(..., description="Tool name to call")
    arguments: Optional[Dict[str, Any]] = Field(default=None, description="Tool arguments")


class ContentBlock(BaseModel):
    """A single piece of tool output."""
    model_config = ConfigDict(extra="allow")

    type: str = Field(default="text", description="Content type tag")
    text: str = Field(default="", description="Text payload")


class ToolCallResponse(BaseModel):
    """Response from tool call."""
    content: List[ContentBlock] = Field(..., min_length=1, description="Tool output content")
    isError: bool = Field(default=False, description="Whether the result is an error")


# ============================================================================
# Resource Models
# ============================================================================

class ResourceDefinition(BaseModel):
    """MCP resource definition schema."""
    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., description="Resource URI")
    name: str = Field(..., description="Resource name")
    description: Optional[str] = Field(None, description="Resource description")
    mimeType: Optional[str] = Field(None, description="MIME type of the resource")

    @property
    def key(self) -> str:
        return self.uri


class ResourceListResponse(BaseModel):
    """Response for listing available resources."""
    resources: List[ResourceDefinition] = Field(..., description="List of available resources")


class ResourceReadRequest(BaseModel):
    """Request to read a resource."""
    uri: str = Field(..., description="Resource URI to read")


class ResourceContent(BaseModel):
    """One entry of a resource read."""
    uri: str
    mimeType: Optional[str] = None
    text: str = ""


class ResourceReadResponse(BaseModel):
    """Response from reading a resource."""
    contents: List[ResourceContent] = Field(..., description="Resource contents")


# ============================================================================
# Prompt Models
# ============================================================================

class PromptArgument(BaseModel):
    """Prompt argument definition."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Argument name")
    description: Optional[str] = Field(None, description="Argument description")
    required: bool = Field(default=True, description="Whether argument is required")


class PromptDefinition(BaseModel):
    """MCP prompt definition schema."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Prompt name/identifier")
    description: Optional[str] = Field(None, description="Prompt description")
    arguments: List[PromptArgument] = Field(default_factory=list, description="Prompt arguments")

    @property
    def key(self) -> str:
        return self.name


class PromptListResponse(BaseModel):
    """Response for listing available prompts."""
    prompts: List[PromptDefinition] = Field(..., description="List of available prompts")


class PromptGetRequest(BaseModel):
    """Request to get a prompt."""
    name: str = Field(..., description="Prompt name")
    arguments: Optional[Dict[str, Any]] = Field(None, description="Prompt arguments")


class PromptMessage(BaseModel):
    role: str = Field(default="user", description="Message role")
    content: str = Field(..., description="Message text")


class PromptGetResponse(BaseModel):
    """Response from getting a prompt."""
    description: Optional[str] = Field(None, description="Prompt description")
    messages: List[PromptMessage] = Field(..., description="Prompt messages")


# ============================================================================
# Invocation / Lifecycle Models
# ============================================================================

class InvocationRequest(BaseModel):
    """Transport-neutral request to invoke one capability.

    For resources ``name`` holds the URI.
    """
    kind: CapabilityKind
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class CapabilityCount(BaseModel):
    count: int = 0


class ServerCapabilities(BaseModel):
    tools: CapabilityCount
    resources: CapabilityCount
    prompts: CapabilityCount


class ServerInfo(BaseModel):
    name: str
    version: str


class InitializeResponse(BaseModel):
    """Server advertisement returned by initialize."""
    protocolVersion: str
    serverInfo: ServerInfo
    capabilities: ServerCapabilities


# ============================================================================
# Error Models
# ============================================================================

class ErrorBody(BaseModel):
    """MCP error payload."""
    code: str = Field(..., description="Error taxonomy code")
    message: str = Field(..., description="Error message")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional error data")


class ErrorResponse(BaseModel):
    """Envelope for every non-2xx HTTP response."""
    error: ErrorBody
