"""Shared error types for the MCP server.

Two families matter at the dispatcher boundary:

* :class:`JsonRpcProtocolError` — the envelope itself is unusable. Rendered as
  a JSON-RPC ``error`` object.
* :class:`ToolError` — the envelope is fine but the tool could not produce
  data. Rendered as a *successful* ``tools/call`` result with ``isError`` set,
  so the calling agent can show the message inline.
"""

from __future__ import annotations

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


class EarningsMCPError(Exception):
    """Base error for everything raised by this package."""


class ConfigError(EarningsMCPError):
    """Configuration could not be loaded or failed validation."""


# ---------------------------------------------------------------------------
# Protocol-level errors
# ---------------------------------------------------------------------------


class JsonRpcProtocolError(EarningsMCPError):
    """An envelope-level failure carrying a JSON-RPC error code."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(JsonRpcProtocolError):
    """The payload was not valid JSON."""

    code = PARSE_ERROR


class InvalidRequestError(JsonRpcProtocolError):
    """The payload was JSON but not a valid JSON-RPC 2.0 request."""

    code = INVALID_REQUEST


class MethodNotFoundError(JsonRpcProtocolError):
    """The request named a method this server does not implement."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


# ---------------------------------------------------------------------------
# Tool-level errors
# ---------------------------------------------------------------------------


class ToolError(EarningsMCPError):
    """A tool invocation failed in a way the caller should see as output."""

    def user_message(self) -> str:
        """Single-line text placed in the tool result."""
        return f"Error: {self}"


class ToolNotFoundError(ToolError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ArgumentValidationError(ToolError):
    """Tool arguments did not match the declared input schema."""

    def __init__(self, tool_name: str, issues: list[str]) -> None:
        self.tool_name = tool_name
        self.issues = issues
        super().__init__(f"Invalid arguments for {tool_name}: " + "; ".join(issues))


class UpstreamError(ToolError):
    """The financial-data provider answered with a non-2xx status."""

    def __init__(self, status: int | None, detail: str = "") -> None:
        self.status = status
        self.detail = detail
        msg = f"Upstream error (HTTP {status})" if status is not None else "Upstream error"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)

    def user_message(self) -> str:
        status = self.status
        if status == 404:
            return "Error: Resource not found. Please check the ID or symbol is correct."
        if status in (401, 403):
            return "Error: Permission denied. Authentication may be required."
        if status == 429:
            return "Error: Rate limit exceeded. Please wait before making more requests."
        if status is not None and status >= 500:
            return f"Error: Server error (HTTP {status}) from the data provider."
        return f"Error: {self}"


class UpstreamTimeoutError(UpstreamError):
    """The request to the data provider timed out or never connected."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(None, detail)

    def user_message(self) -> str:
        return "Error: Request timed out. The server may be slow or unavailable."


class InferenceNotConfiguredError(ToolError):
    """An AI tool was called without inference credentials."""

    def __init__(self) -> None:
        super().__init__(
            "AI inference is not configured. Set EARNINGS_AI_API_KEY (or "
            "CLOUDFLARE_API_TOKEN and CLOUDFLARE_ACCOUNT_ID) to use AI analysis tools."
        )


class InferenceError(ToolError):
    """The text-completion provider failed or returned nothing usable."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("AI inference failed" + (f": {detail}" if detail else ""))


class InferenceTimeoutError(InferenceError):
    """The completion did not finish within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"timed out after {timeout}s")
