"""MCP models — JSON-RPC 2.0 messages, tool descriptors and tool results.

Implements the message shapes used by the Model Context Protocol for the
handshake (``initialize``), tool discovery (``tools/list``) and execution
(``tools/call``).
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from earnings_mcp.formatting import truncate_text

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"

RequestId = int | str | None

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = JSONRPC_VERSION
    method: str
    id: RequestId = None
    params: dict[str, Any] = {}


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message.

    Exactly one of ``result`` or ``error`` is set; use the constructors.
    """

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @classmethod
    def success(cls, request_id: RequestId, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId,
        code: int,
        message: str,
        data: Any = None,
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message, data=data))

    def to_wire(self) -> dict[str, Any]:
        """Serialise with ``id`` always present and only one of result/error."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            wire["error"] = self.error.model_dump(exclude_none=True)
        else:
            wire["result"] = self.result if self.result is not None else {}
        return wire


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ToolAnnotations(BaseModel):
    """Behaviour hints advertised alongside each tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    read_only_hint: bool = Field(default=True, alias="readOnlyHint")
    destructive_hint: bool = Field(default=False, alias="destructiveHint")
    idempotent_hint: bool = Field(default=True, alias="idempotentHint")
    open_world_hint: bool = Field(default=True, alias="openWorldHint")


class ToolDescriptor(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    title: str = ""
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    annotations: ToolAnnotations = Field(default_factory=ToolAnnotations)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TextContent(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """The payload of a successful ``tools/call`` response.

    ``content`` is the primary, human-readable channel; ``structured_content``
    is the optional machine-readable echo of the same data.
    """

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = []
    structured_content: dict[str, Any] | None = Field(default=None, alias="structuredContent")
    is_error: bool = Field(default=False, alias="isError")

    @property
    def text(self) -> str:
        """Concatenated text of all content parts."""
        return "\n".join(part.text for part in self.content)

    @classmethod
    def from_text(
        cls,
        text: str,
        structured: dict[str, Any] | None = None,
    ) -> ToolResult:
        """Create a ToolResult with a single text content part."""
        return cls(content=[TextContent(text=text)], structured_content=structured)

    @classmethod
    def from_structured(
        cls,
        structured: dict[str, Any],
        response_format: str,
        markdown: str,
    ) -> ToolResult:
        """Pick the text channel for *response_format* from one data source."""
        if response_format == "json":
            text = json.dumps(structured, indent=2, default=str)
        else:
            text = truncate_text(markdown)
        return cls.from_text(text, structured)

    @classmethod
    def error(cls, message: str) -> ToolResult:
        """A tool-level failure, flattened to a single line."""
        line = " ".join(message.split())
        return cls(content=[TextContent(text=line)], is_error=True)

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"content": [part.model_dump() for part in self.content]}
        if self.structured_content is not None:
            wire["structuredContent"] = self.structured_content
        if self.is_error:
            wire["isError"] = True
        return wire
