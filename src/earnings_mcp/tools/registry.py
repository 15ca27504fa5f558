"""ToolRegistry — the fixed catalog mapping tool names to schemas and handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from earnings_mcp.protocol.models import ToolAnnotations, ToolDescriptor, ToolResult

if TYPE_CHECKING:
    from earnings_mcp.config import ServerConfig
    from earnings_mcp.services.api_client import EarningsApiClient
    from earnings_mcp.services.inference import InferenceClient
    from earnings_mcp.tools.schema import ToolSchema


@dataclass(frozen=True)
class ToolContext:
    """Everything a handler may touch, passed explicitly per call."""

    config: ServerConfig
    api: EarningsApiClient
    inference: InferenceClient


ToolHandler = Callable[[ToolContext, dict[str, Any]], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Tool:
    """One catalog entry: descriptor metadata, compiled schema and handler."""

    name: str
    title: str
    description: str
    schema: ToolSchema
    handler: ToolHandler
    idempotent: bool = True
    descriptor: ToolDescriptor = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        descriptor = ToolDescriptor(
            name=self.name,
            title=self.title,
            description=self.description,
            input_schema=self.schema.json_schema(),
            annotations=ToolAnnotations(idempotent_hint=self.idempotent),
        )
        object.__setattr__(self, "descriptor", descriptor)

    def validate(self, raw_arguments: Any) -> dict[str, Any]:
        """Validate raw arguments against this tool's schema."""
        return self.schema.validate_arguments(self.name, raw_arguments)


class ToolRegistry:
    """Immutable name -> :class:`Tool` map.

    Usage::

        registry = ToolRegistry(build_tools())
        registry.list()        # descriptors, catalog order
        registry.get("name")   # Tool or None
    """

    def __init__(self, tools: Iterable[Tool]) -> None:
        by_name: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in by_name:
                msg = f"Duplicate tool name: {tool.name}"
                raise ValueError(msg)
            by_name[tool.name] = tool
        self._tools = by_name
        self._descriptors = tuple(t.descriptor for t in by_name.values())

    def list(self) -> list[ToolDescriptor]:
        """Return every descriptor in catalog order."""
        return list(self._descriptors)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
