"""Protocol layer — JSON-RPC envelopes and MCP payload models."""

from earnings_mcp.protocol.models import (
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    TextContent,
    ToolAnnotations,
    ToolDescriptor,
    ToolResult,
)

__all__ = [
    "JSONRPC_VERSION",
    "MCP_PROTOCOL_VERSION",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "TextContent",
    "ToolAnnotations",
    "ToolDescriptor",
    "ToolResult",
]
