"""McpDispatcher — routes JSON-RPC envelopes to the MCP method handlers.

One dispatcher serves every transport. It never raises for a bad request:
envelope problems become JSON-RPC error objects and every tool failure
becomes a ``tools/call`` result with ``isError`` set.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from earnings_mcp import SERVER_NAME, __version__
from earnings_mcp.config import ServerConfig
from earnings_mcp.errors import (
    InvalidRequestError,
    JsonRpcProtocolError,
    MethodNotFoundError,
    ToolError,
    ToolNotFoundError,
)
from earnings_mcp.protocol.models import (
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
    ToolResult,
)
from earnings_mcp.services.api_client import EarningsApiClient
from earnings_mcp.services.inference import InferenceClient
from earnings_mcp.tools.catalog import build_registry
from earnings_mcp.tools.registry import ToolContext, ToolRegistry
from earnings_mcp.utils.telemetry import (
    ATTR_RPC_ERROR_CODE,
    ATTR_RPC_METHOD,
    ATTR_TOOL_IS_ERROR,
    ATTR_TOOL_NAME,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class McpDispatcher:
    """Handles ``initialize``, ``tools/list`` and ``tools/call``.

    Usage::

        dispatcher = McpDispatcher(build_registry(), context)
        response = await dispatcher.dispatch({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    """

    def __init__(self, registry: ToolRegistry, context: ToolContext) -> None:
        self.registry = registry
        self.context = context
        self._tools_wire = [d.to_wire() for d in registry.list()]

    def server_info(self) -> dict[str, Any]:
        return {"name": SERVER_NAME, "version": __version__}

    def list_tools(self) -> list[dict[str, Any]]:
        """The rendered catalog; a fresh copy on every call."""
        return copy.deepcopy(self._tools_wire)

    async def dispatch(self, envelope: Any) -> dict[str, Any]:
        """Handle one decoded JSON-RPC message and return the response dict."""
        request_id = read_request_id(envelope)
        with _tracer.start_as_current_span("mcp.dispatch") as span:
            try:
                request = _parse_request(envelope)
                span.set_attribute(ATTR_RPC_METHOD, request.method)
                result = await self._route(request)
            except JsonRpcProtocolError as exc:
                span.set_attribute(ATTR_RPC_ERROR_CODE, exc.code)
                logger.debug("JSON-RPC error %d: %s", exc.code, exc.message)
                return JsonRpcResponse.failure(request_id, exc.code, exc.message).to_wire()
            return JsonRpcResponse.success(request.id, result).to_wire()

    async def call_tool(self, name: Any, arguments: Any) -> ToolResult:
        """Validate and run one tool, converting every failure into an error result."""
        with _tracer.start_as_current_span("tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, str(name))
            result = await self._run_tool(name, arguments)
            span.set_attribute(ATTR_TOOL_IS_ERROR, result.is_error)
            return result

    async def _route(self, request: JsonRpcRequest) -> dict[str, Any]:
        if request.method == "initialize":
            return {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": self.server_info(),
            }
        if request.method == "tools/list":
            return {"tools": self.list_tools()}
        if request.method == "tools/call":
            result = await self.call_tool(request.params.get("name"), request.params.get("arguments"))
            return result.to_wire()
        raise MethodNotFoundError(request.method)

    async def _run_tool(self, name: Any, arguments: Any) -> ToolResult:
        try:
            tool = self.registry.get(name) if isinstance(name, str) else None
            if tool is None:
                raise ToolNotFoundError(str(name) if name is not None else "")
            args = tool.validate(arguments)
            return await tool.handler(self.context, args)
        except ToolError as exc:
            logger.info("Tool %s failed: %s", name, exc)
            return ToolResult.error(exc.user_message())
        except Exception as exc:
            logger.exception("Unexpected error in tool %s", name)
            return ToolResult.error(f"Error: Unexpected error occurred: {type(exc).__name__}: {exc}")


def read_request_id(envelope: Any) -> RequestId:
    """Best-effort id for error responses; ``None`` when unreadable."""
    if not isinstance(envelope, dict):
        return None
    request_id = envelope.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, (int, str)):
        return None
    return request_id


def _parse_request(envelope: Any) -> JsonRpcRequest:
    if not isinstance(envelope, dict):
        raise InvalidRequestError("Invalid Request: expected a JSON object")
    if envelope.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequestError(f"Invalid Request: jsonrpc must be '{JSONRPC_VERSION}'")
    method = envelope.get("method")
    if not isinstance(method, str):
        raise InvalidRequestError("Invalid Request: method must be a string")
    params = envelope.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise InvalidRequestError("Invalid Request: params must be an object")
    request_id = envelope.get("id")
    if request_id is not None and read_request_id(envelope) is None:
        raise InvalidRequestError("Invalid Request: id must be a string, number or null")
    return JsonRpcRequest(method=method, id=request_id, params=params)


def build_dispatcher(config: ServerConfig) -> McpDispatcher:
    """Wire the catalog, upstream client and inference client for *config*."""
    context = ToolContext(
        config=config,
        api=EarningsApiClient.from_config(config),
        inference=InferenceClient(config.ai),
    )
    return McpDispatcher(build_registry(), context)
