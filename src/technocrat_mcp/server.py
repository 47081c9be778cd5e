"""
MCP Server - HTTP Transport

FastAPI application exposing the capability registry as discrete
request/response endpoints:
- POST /initialize
- GET /tools/list, POST /tools/call
- GET /resources/list, POST /resources/read
- GET /prompts/list, POST /prompts/get
- GET /health

Every request is independent; the application keeps no session state.
All routes go through the shared InvocationEngine so they behave exactly
like the matching stdio methods.
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import SERVER_NAME, __version__
from .config import Settings
from .engine import InvocationEngine
from .errors import HandlerError, InvalidArguments, MCPError, ParseError
from .models import (
    ErrorBody,
    ErrorResponse,
    InitializeResponse,
    PromptGetResponse,
    PromptListResponse,
    ResourceReadResponse,
    ResourceListResponse,
    ToolCallResponse,
    ToolListResponse,
)
from .registry import Registry

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str, data: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorBody(code=code, message=message, data=data)).model_dump(exclude_none=True)
    )


async def read_json_body(request: Request) -> Dict[str, Any]:
    """
    Decode a POST body.

    An empty body counts as ``{}``. A non-empty body must be declared as
    application/json and decode to a JSON object.

    Raises:
        InvalidArguments: Wrong content type or non-object body
        ParseError: Body is not valid UTF-8 JSON
    """
    body = await request.body()
    if not body.strip():
        return {}

    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != "application/json":
        raise InvalidArguments(
            "Content-Type must be application/json",
            field="Content-Type",
            expected="application/json",
            actual=content_type or "missing",
        )

    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        raise InvalidArguments("Request body must be a JSON object", field="body", expected="object")
    return data


def create_app(registry: Registry, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the HTTP application for a populated registry.

    The registry is frozen here: nothing can be registered once the
    transport exists.
    """
    settings = settings or Settings()
    registry.freeze()
    engine = InvocationEngine(registry)

    app = FastAPI(
        title="MCP Server - Technocrat",
        description="Model Context Protocol server for exposing tools, resources, and prompts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.engine = engine

    # CORS middleware for cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ========================================================================
    # Error Handlers
    # ========================================================================

    @app.exception_handler(MCPError)
    async def mcp_error_handler(request: Request, exc: MCPError):
        if exc.http_status >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
        return _error_response(exc.http_status, exc.code, exc.message, exc.data)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, InvalidArguments.code, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            code = "NotFound"
        elif exc.status_code >= 500:
            code = "HandlerError"
        else:
            code = InvalidArguments.code
        return _error_response(exc.status_code, code, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error_response(500, HandlerError.code, "Internal server error", {"exception": type(exc).__name__})

    # ========================================================================
    # Health Check
    # ========================================================================

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness only; never consults the registry."""
        return {
            "status": "healthy",
            "service": SERVER_NAME,
            "version": __version__
        }

    router = APIRouter(prefix=settings.route_prefix)

    @router.post("/initialize", response_model=InitializeResponse, tags=["Lifecycle"], response_model_exclude_none=True)
    async def initialize_endpoint(request: Request):
        """Advertise protocol version, server info and capability counts."""
        params = await read_json_body(request)
        return await engine.handle("initialize", params)

    # ========================================================================
    # Tool Endpoints
    # ========================================================================

    @router.get("/tools/list", response_model=ToolListResponse, tags=["Tools"], response_model_exclude_none=True, summary="List available tools")
    async def list_tools_endpoint():
        return await engine.handle("tools/list")

    @router.post("/tools/call", response_model=ToolCallResponse, tags=["Tools"], response_model_exclude_none=True, summary="Call a tool")
    async def call_tool_endpoint(request: Request):
        """
        Execute a tool call.

        - **name**: Tool name to call
        - **arguments**: Tool arguments as JSON object
        """
        params = await read_json_body(request)
        return await engine.handle("tools/call", params)

    # ========================================================================
    # Resource Endpoints
    # ========================================================================

    @router.get("/resources/list", response_model=ResourceListResponse, tags=["Resources"], response_model_exclude_none=True, summary="List available resources")
    async def list_resources_endpoint():
        return await engine.handle("resources/list")

    @router.post("/resources/read", response_model=ResourceReadResponse, tags=["Resources"], response_model_exclude_none=True, summary="Read a resource")
    async def read_resource_endpoint(request: Request):
        """
        Read a resource by URI.

        - **uri**: Resource URI (e.g., "info://server")
        """
        params = await read_json_body(request)
        return await engine.handle("resources/read", params)

    # ========================================================================
    # Prompt Endpoints
    # ========================================================================

    @router.get("/prompts/list", response_model=PromptListResponse, tags=["Prompts"], response_model_exclude_none=True, summary="List available prompts")
    async def list_prompts_endpoint():
        return await engine.handle("prompts/list")

    @router.post("/prompts/get", response_model=PromptGetResponse, tags=["Prompts"], response_model_exclude_none=True, summary="Get a prompt")
    async def get_prompt_endpoint(request: Request):
        """
        Get a prompt, with arguments substituted.

        - **name**: Prompt name
        - **arguments**: Optional prompt arguments
        """
        params = await read_json_body(request)
        return await engine.handle("prompts/get", params)

    app.include_router(router)
    return app


def run(registry: Registry, settings: Settings) -> None:
    """Serve the HTTP transport until the process is signaled to stop."""
    import uvicorn

    app = create_app(registry, settings)
    logger.info(f"MCP Server listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
