"""
Invocation Engine

Resolves a transport-neutral invocation against the registry, validates the
caller's arguments, runs the handler and normalizes the result into the
canonical outcome for its capability kind.

Both transports route through ``InvocationEngine.handle``, so a method name
means the same thing whether it arrived over HTTP or stdio.
"""

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from . import PROTOCOL_VERSION, SERVER_NAME, __version__
from .errors import (
    HandlerError,
    InvalidArguments,
    MCPError,
    MethodNotFound,
    NotFound,
    UnknownCapability,
)
from .models import (
    CapabilityCount,
    CapabilityKind,
    ContentBlock,
    InitializeResponse,
    InvocationRequest,
    PromptDefinition,
    PromptGetRequest,
    PromptGetResponse,
    PromptListResponse,
    PromptMessage,
    ResourceContent,
    ResourceDefinition,
    ResourceListResponse,
    ResourceReadRequest,
    ResourceReadResponse,
    ServerCapabilities,
    ServerInfo,
    ToolCallRequest,
    ToolCallResponse,
    ToolListResponse,
)
from .registry import Registry

logger = logging.getLogger(__name__)


def _json_type(value: Any) -> str:
    """Name the JSON type of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _matches(expected: str, actual: str) -> bool:
    if expected == "number":
        return actual in ("number", "integer")
    return expected == actual


_KNOWN_TYPES = {"string", "number", "integer", "boolean", "object", "array", "null"}


def validate_tool_arguments(schema: Dict[str, Any], arguments: Dict[str, Any]) -> None:
    """
    Check arguments against a tool's JSON input schema.

    Required fields are checked first in the order the schema lists them,
    then declared property types in declaration order. Keys the schema does
    not declare are passed through unchecked.

    Raises:
        InvalidArguments: On the first violation found
    """
    properties = schema.get("properties") or {}

    for field in schema.get("required") or []:
        if field not in arguments:
            expected = (properties.get(field) or {}).get("type")
            raise InvalidArguments(
                f"Missing required argument: {field}",
                field=field,
                expected=expected if isinstance(expected, str) else "present",
                actual="missing",
            )

    for field, spec in properties.items():
        if field not in arguments or not isinstance(spec, dict):
            continue
        declared = spec.get("type")
        if declared is None:
            continue
        allowed = [declared] if isinstance(declared, str) else list(declared)
        allowed = [t for t in allowed if t in _KNOWN_TYPES]
        if not allowed:
            continue
        actual = _json_type(arguments[field])
        if not any(_matches(t, actual) for t in allowed):
            expected = "|".join(allowed)
            raise InvalidArguments(
                f"Argument '{field}' must be of type {expected}, got {actual}",
                field=field,
                expected=expected,
                actual=actual,
            )


def validate_prompt_arguments(definition: PromptDefinition, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check required prompt arguments and fill missing optional ones with "".

    Returns:
        A new argument mapping ready for the prompt builder
    """
    resolved = dict(arguments)
    for argument in definition.arguments:
        if argument.name not in arguments:
            if argument.required:
                raise InvalidArguments(
                    f"Missing required argument: {argument.name}",
                    field=argument.name,
                    expected="present",
                    actual="missing",
                )
            resolved[argument.name] = ""
    return resolved


def _to_content_block(item: Any) -> ContentBlock:
    if isinstance(item, ContentBlock):
        return item
    if isinstance(item, dict) and "type" in item:
        return ContentBlock.model_validate(item)
    if isinstance(item, str):
        return ContentBlock(text=item)
    return ContentBlock(text=json.dumps(item, default=str))


def normalize_tool_result(result: Any) -> ToolCallResponse:
    """Wrap a tool handler's raw result into a ToolCallResponse."""
    if isinstance(result, ToolCallResponse):
        blocks = list(result.content)
    elif result is None or (isinstance(result, (str, list, tuple, dict)) and not result):
        blocks = []
    elif isinstance(result, str):
        blocks = [ContentBlock(text=result)]
    elif isinstance(result, ContentBlock):
        blocks = [result]
    elif isinstance(result, (list, tuple)) and all(
        isinstance(item, ContentBlock) or (isinstance(item, dict) and "type" in item)
        for item in result
    ):
        blocks = [_to_content_block(item) for item in result]
    elif isinstance(result, BaseModel):
        blocks = [ContentBlock(text=result.model_dump_json())]
    else:
        blocks = [ContentBlock(text=json.dumps(result, default=str))]

    # Clients always get at least one block to render
    if not blocks:
        blocks = [ContentBlock(text="")]
    return ToolCallResponse(content=blocks, isError=False)


def normalize_resource_result(definition: ResourceDefinition, result: Any) -> ResourceReadResponse:
    """Wrap a resource reader's raw result into a ResourceReadResponse."""
    if isinstance(result, ResourceReadResponse):
        return result
    if isinstance(result, bytes):
        result = result.decode("utf-8")
    if result is None:
        result = ""
    if isinstance(result, str):
        contents = [ResourceContent(uri=definition.uri, mimeType=definition.mimeType, text=result)]
    elif isinstance(result, (list, tuple)):
        contents = []
        for item in result:
            if isinstance(item, ResourceContent):
                contents.append(item)
            else:
                entry = {"uri": definition.uri, "mimeType": definition.mimeType}
                entry.update(item)
                contents.append(ResourceContent.model_validate(entry))
    else:
        text = result.model_dump_json() if isinstance(result, BaseModel) else json.dumps(result, default=str)
        contents = [ResourceContent(uri=definition.uri, mimeType=definition.mimeType, text=text)]
    return ResourceReadResponse(contents=contents)


def normalize_prompt_result(definition: PromptDefinition, result: Any) -> PromptGetResponse:
    """Wrap a prompt builder's raw result into a PromptGetResponse."""
    if isinstance(result, PromptGetResponse):
        return result
    description = definition.description
    if isinstance(result, dict) and "messages" in result:
        description = result.get("description", description)
        result = result["messages"]
    if result is None:
        result = ""
    if isinstance(result, str):
        messages = [PromptMessage(role="user", content=result)]
    else:
        messages = [
            item if isinstance(item, PromptMessage) else PromptMessage.model_validate(item)
            for item in result
        ]
    return PromptGetResponse(description=description, messages=messages)


class InvocationEngine:
    """
    Shared dispatch layer for both transports.

    The engine holds a reference to a registry and no other state, so a
    single instance can serve concurrent HTTP requests.
    """

    def __init__(self, registry: Registry, name: str = SERVER_NAME, version: str = __version__):
        self.registry = registry
        self.name = name
        self.version = version
        self._methods: Dict[str, Callable[[Dict[str, Any]], Awaitable[BaseModel]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
            "prompts/list": self._prompts_list,
            "prompts/get": self._prompts_get,
        }

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def initialize(self) -> InitializeResponse:
        return InitializeResponse(
            protocolVersion=PROTOCOL_VERSION,
            serverInfo=ServerInfo(name=self.name, version=self.version),
            capabilities=ServerCapabilities(
                tools=CapabilityCount(count=self.registry.count(CapabilityKind.TOOL)),
                resources=CapabilityCount(count=self.registry.count(CapabilityKind.RESOURCE)),
                prompts=CapabilityCount(count=self.registry.count(CapabilityKind.PROMPT)),
            ),
        )

    def list_tools(self) -> ToolListResponse:
        return ToolListResponse(tools=list(self.registry.list(CapabilityKind.TOOL)))

    def list_resources(self) -> ResourceListResponse:
        return ResourceListResponse(resources=list(self.registry.list(CapabilityKind.RESOURCE)))

    def list_prompts(self) -> PromptListResponse:
        return PromptListResponse(prompts=list(self.registry.list(CapabilityKind.PROMPT)))

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    async def invoke(self, request: InvocationRequest) -> BaseModel:
        """
        Execute one invocation.

        Args:
            request: Capability kind, name (URI for resources) and arguments

        Returns:
            ToolCallResponse, ResourceReadResponse or PromptGetResponse

        Raises:
            UnknownCapability: If nothing is registered under the name
            InvalidArguments: If the arguments violate the declared shape
            HandlerError: If the handler itself failed
        """
        try:
            definition, handler = self.registry.lookup(request.kind, request.name)
        except NotFound:
            raise UnknownCapability(request.kind.value, request.name) from None

        arguments = request.arguments
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArguments(
                "Arguments must be an object",
                field="arguments",
                expected="object",
                actual=_json_type(arguments),
            )

        if request.kind is CapabilityKind.TOOL:
            validate_tool_arguments(definition.inputSchema, arguments)
            return await self._run(request, handler, arguments, normalize_tool_result)

        if request.kind is CapabilityKind.PROMPT:
            arguments = validate_prompt_arguments(definition, arguments)
            return await self._run(
                request, handler, arguments, lambda result: normalize_prompt_result(definition, result)
            )

        return await self._run(
            request, handler, definition.uri, lambda result: normalize_resource_result(definition, result)
        )

    async def _run(
        self,
        request: InvocationRequest,
        handler: Callable,
        payload: Any,
        normalize: Callable[[Any], BaseModel],
    ) -> BaseModel:
        # Anything the handler raises, and any result that cannot be
        # normalized, is reported as a HandlerError.
        try:
            if inspect.iscoroutinefunction(handler):
                result = await handler(payload)
            else:
                result = await run_in_threadpool(handler, payload)
                if inspect.isawaitable(result):
                    result = await result
            return normalize(result)
        except HandlerError:
            raise
        except Exception as e:
            logger.error(f"Error executing {request.kind.value} '{request.name}': {e}", exc_info=True)
            raise HandlerError(str(e), data={"kind": request.kind.value, "name": request.name}) from e

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolCallResponse:
        return await self.invoke(InvocationRequest(kind=CapabilityKind.TOOL, name=name, arguments=arguments or {}))

    async def read_resource(self, uri: str) -> ResourceReadResponse:
        return await self.invoke(InvocationRequest(kind=CapabilityKind.RESOURCE, name=uri))

    async def get_prompt(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> PromptGetResponse:
        return await self.invoke(InvocationRequest(kind=CapabilityKind.PROMPT, name=name, arguments=arguments or {}))

    # ------------------------------------------------------------------
    # Method table
    # ------------------------------------------------------------------

    async def handle(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run a protocol method and return its JSON-ready result.

        Raises:
            MethodNotFound: If ``method`` is not a known operation
            InvalidArguments: If ``params`` is malformed
            MCPError: Any taxonomy error raised by the invocation
        """
        operation = self._methods.get(method) if isinstance(method, str) else None
        if operation is None:
            raise MethodNotFound(method)
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidArguments(
                "Params must be an object",
                field="params",
                expected="object",
                actual=_json_type(params),
            )
        result = await operation(params)
        return result.model_dump(mode="json", exclude_none=True)

    @staticmethod
    def _parse(model: type, params: Dict[str, Any]) -> Any:
        try:
            return model.model_validate(params)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or None
            raise InvalidArguments(
                f"Invalid params: {field}: {error['msg']}" if field else f"Invalid params: {error['msg']}",
                field=field,
                actual="missing" if error["type"] == "missing" else None,
            ) from None

    async def _initialize(self, params: Dict[str, Any]) -> BaseModel:
        client = params.get("clientInfo")
        if isinstance(client, dict):
            logger.info(f"Initialize from client {client.get('name')} {client.get('version')}")
        return self.initialize()

    async def _ping(self, params: Dict[str, Any]) -> BaseModel:
        return _Empty()

    async def _tools_list(self, params: Dict[str, Any]) -> BaseModel:
        return self.list_tools()

    async def _tools_call(self, params: Dict[str, Any]) -> BaseModel:
        request = self._parse(ToolCallRequest, params)
        return await self.call_tool(request.name, request.arguments)

    async def _resources_list(self, params: Dict[str, Any]) -> BaseModel:
        return self.list_resources()

    async def _resources_read(self, params: Dict[str, Any]) -> BaseModel:
        request = self._parse(ResourceReadRequest, params)
        return await self.read_resource(request.uri)

    async def _prompts_list(self, params: Dict[str, Any]) -> BaseModel:
        return self.list_prompts()

    async def _prompts_get(self, params: Dict[str, Any]) -> BaseModel:
        request = self._parse(PromptGetRequest, params)
        return await self.get_prompt(request.name, request.arguments)


class _Empty(BaseModel):
    pass
