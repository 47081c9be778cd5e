"""
Tests for the MCP HTTP transport

Tests cover:
- Health check and initialize
- Tool listing and execution
- Resource listing and reading
- Prompt listing and retrieval
- Error envelope and status codes
"""

import json

import pytest
from fastapi.testclient import TestClient

from technocrat_mcp.config import Settings
from technocrat_mcp.errors import RegistryFrozenError
from technocrat_mcp.handlers import build_registry
from technocrat_mcp.models import ToolDefinition
from technocrat_mcp.server import create_app


# ============================================================================
# Fixtures
# ============================================================================

def fail(arguments):
    raise RuntimeError("disk on fire")


def bad_block(arguments):
    return [{"type": "text", "text": 5}]


FAIL_TOOL = ToolDefinition(
    name="fail",
    description="Always fails",
    inputSchema={"type": "object", "properties": {}}
)


@pytest.fixture
def registry():
    registry = build_registry()
    registry.register_tool(FAIL_TOOL, fail)
    return registry


@pytest.fixture
def client(registry):
    return TestClient(create_app(registry))


# ============================================================================
# Health Check / Initialize Tests
# ============================================================================

def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "technocrat"


def test_health_does_not_touch_registry(registry):
    """Health stays green even if the registry is unusable."""
    app = create_app(registry)
    registry._definitions = None
    response = TestClient(app).get("/health")
    assert response.status_code == 200


def test_initialize(client, registry):
    response = client.post("/initialize", json={})
    assert response.status_code == 200
    data = response.json()
    assert data["protocolVersion"] == "2024-11-05"
    assert data["serverInfo"]["name"] == "technocrat"
    assert data["capabilities"]["tools"]["count"] == 3
    assert data["capabilities"]["resources"]["count"] == 1
    assert data["capabilities"]["prompts"]["count"] >= 2


def test_initialize_empty_body(client):
    response = client.post("/initialize")
    assert response.status_code == 200


def test_registry_frozen_after_app_creation(registry):
    create_app(registry)
    with pytest.raises(RegistryFrozenError):
        registry.register_tool(ToolDefinition(name="late", description="too late"), fail)


# ============================================================================
# Tool Endpoint Tests
# ============================================================================

def test_list_tools(client):
    """Test listing tools in registration order."""
    response = client.get("/tools/list")
    assert response.status_code == 200
    data = response.json()
    assert "tools" in data

    tool_names = [tool["name"] for tool in data["tools"]]
    assert tool_names == ["echo", "system_info", "fail"]
    assert data["tools"][0]["inputSchema"]["required"] == ["message"]


def test_call_tool_echo(client):
    """Test calling the echo tool."""
    request = {
        "name": "echo",
        "arguments": {
            "message": "hi"
        }
    }

    response = client.post("/tools/call", json=request)
    assert response.status_code == 200
    data = response.json()
    assert data["content"] == [{"type": "text", "text": "hi"}]
    assert data["isError"] is False


def test_call_tool_system_info(client):
    response = client.post("/tools/call", json={"name": "system_info"})
    assert response.status_code == 200
    info = json.loads(response.json()["content"][0]["text"])
    assert info["server"] == "technocrat"
    assert info["status"] == "running"
    assert "workspace" in info


def test_call_tool_invalid_name(client):
    """Test calling non-existent tool."""
    request = {
        "name": "invalid_tool",
        "arguments": {}
    }

    response = client.post("/tools/call", json=request)
    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "UnknownCapability"
    assert "invalid_tool" in error["message"]


def test_call_tool_missing_arguments(client):
    """Test calling tool with missing required arguments."""
    request = {
        "name": "echo",
        "arguments": {}
    }

    response = client.post("/tools/call", json=request)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "InvalidArguments"
    assert error["data"]["field"] == "message"


def test_call_tool_wrong_type(client):
    response = client.post("/tools/call", json={"name": "echo", "arguments": {"message": 42}})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["data"] == {"field": "message", "expected": "string", "actual": "integer"}


def test_call_tool_missing_name(client):
    response = client.post("/tools/call", json={"arguments": {}})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "InvalidArguments"


def test_call_tool_handler_error(client):
    response = client.post("/tools/call", json={"name": "fail", "arguments": {}})
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "HandlerError"
    assert error["message"] == "disk on fire"


def test_call_tool_unnormalizable_result(registry):
    registry.register_tool(ToolDefinition(name="bad_block", description="Bad block"), bad_block)
    response = TestClient(create_app(registry)).post("/tools/call", json={"name": "bad_block"})
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "HandlerError"
    assert "validation error" in error["message"]
    assert error["data"] == {"kind": "tool", "name": "bad_block"}


def test_call_tool_wrong_content_type(client):
    response = client.post(
        "/tools/call",
        content='{"name": "echo", "arguments": {"message": "hi"}}',
        headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "InvalidArguments"


def test_call_tool_malformed_json(client):
    response = client.post(
        "/tools/call",
        content='{"name": "echo",',
        headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "ParseError"


# ============================================================================
# Resource Endpoint Tests
# ============================================================================

def test_list_resources(client):
    """Test listing resources."""
    response = client.get("/resources/list")
    assert response.status_code == 200
    data = response.json()
    resource_uris = [r["uri"] for r in data["resources"]]
    assert resource_uris == ["info://server"]
    assert data["resources"][0]["mimeType"] == "application/json"


def test_read_resource_server_info(client):
    """Test reading the server info resource."""
    response = client.post("/resources/read", json={"uri": "info://server"})
    assert response.status_code == 200
    contents = response.json()["contents"]
    assert len(contents) == 1
    assert contents[0]["uri"] == "info://server"
    assert contents[0]["mimeType"] == "application/json"
    info = json.loads(contents[0]["text"])
    assert info["capabilities"]["tools"] == 3


def test_read_resource_not_found(client):
    """Test reading non-existent resource."""
    response = client.post("/resources/read", json={"uri": "info://nonexistent"})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "UnknownCapability"


# ============================================================================
# Prompt Endpoint Tests
# ============================================================================

def test_list_prompts(client):
    """Test listing prompts."""
    response = client.get("/prompts/list")
    assert response.status_code == 200
    prompt_names = [p["name"] for p in response.json()["prompts"]]
    assert prompt_names[0] == "welcome"
    assert "tchncrt.spec" in prompt_names


def test_get_prompt_welcome(client):
    """Test getting the welcome prompt with and without a name."""
    response = client.post("/prompts/get", json={"name": "welcome", "arguments": {"name": "Ada"}})
    assert response.status_code == 200
    messages = response.json()["messages"]
    assert messages == [{"role": "user", "content": "Hello, Ada! Welcome to Technocrat MCP Server."}]

    response = client.post("/prompts/get", json={"name": "welcome"})
    assert response.json()["messages"][0]["content"].startswith("Hello, there!")


def test_get_prompt_command(client):
    response = client.post(
        "/prompts/get",
        json={"name": "tchncrt.spec", "arguments": {"user_input": "photo albums"}}
    )
    assert response.status_code == 200
    content = response.json()["messages"][0]["content"]
    assert content.startswith("# Technocrat Spec Workflow")
    assert "## User Input\n\nphoto albums" in content
    assert "$ARGUMENTS" not in content


def test_get_prompt_invalid_name(client):
    """Test getting non-existent prompt."""
    response = client.post("/prompts/get", json={"name": "nonexistent_prompt"})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "UnknownCapability"


# ============================================================================
# Routing Tests
# ============================================================================

def test_unknown_route_uses_error_envelope(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NotFound"


def test_wrong_method(client):
    response = client.get("/tools/call")
    assert response.status_code == 405
    assert "error" in response.json()


def test_route_prefix(registry):
    client = TestClient(create_app(registry, Settings(route_prefix="/mcp/v1")))
    assert client.get("/mcp/v1/tools/list").status_code == 200
    assert client.get("/tools/list").status_code == 404
    assert client.get("/health").status_code == 200
