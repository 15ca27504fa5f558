"""Tests for JSON-RPC and MCP payload models."""

from __future__ import annotations

import json

from earnings_mcp.formatting import CHARACTER_LIMIT
from earnings_mcp.protocol.models import (
    JsonRpcResponse,
    ToolAnnotations,
    ToolDescriptor,
    ToolResult,
)


class TestJsonRpcResponse:
    def test_success_wire(self) -> None:
        wire = JsonRpcResponse.success(7, {"ok": True}).to_wire()
        assert wire == {"jsonrpc": "2.0", "id": 7, "result": {"ok": True}}

    def test_failure_wire_keeps_null_id(self) -> None:
        wire = JsonRpcResponse.failure(None, -32700, "Parse error").to_wire()
        assert wire == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
        assert "result" not in wire

    def test_failure_with_data(self) -> None:
        wire = JsonRpcResponse.failure("a", -32603, "boom", data={"x": 1}).to_wire()
        assert wire["error"]["data"] == {"x": 1}


class TestToolDescriptor:
    def test_wire_uses_aliases(self) -> None:
        descriptor = ToolDescriptor(
            name="t",
            title="T",
            description="d",
            input_schema={"type": "object"},
            annotations=ToolAnnotations(idempotent_hint=False),
        )
        wire = descriptor.to_wire()
        assert wire["inputSchema"] == {"type": "object"}
        assert wire["annotations"] == {
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True,
        }


class TestToolResult:
    def test_from_text(self) -> None:
        result = ToolResult.from_text("hello")
        assert result.text == "hello"
        assert result.to_wire() == {"content": [{"type": "text", "text": "hello"}]}

    def test_error_flattened_to_one_line(self) -> None:
        result = ToolResult.error("Error: bad\n  thing")
        assert result.is_error
        assert result.text == "Error: bad thing"
        assert result.to_wire()["isError"] is True

    def test_structured_json_mirrors_data(self) -> None:
        data = {"symbol": "AAPL", "price": 1.0}
        result = ToolResult.from_structured(data, "json", "# ignored")
        assert json.loads(result.text) == data
        assert result.to_wire()["structuredContent"] == data

    def test_structured_markdown_truncated(self) -> None:
        result = ToolResult.from_structured({"a": 1}, "markdown", "y" * (CHARACTER_LIMIT * 2))
        assert len(result.text) == CHARACTER_LIMIT
        assert result.structured_content == {"a": 1}
