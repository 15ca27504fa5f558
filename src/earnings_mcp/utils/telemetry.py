"""OpenTelemetry tracing helpers.

Modules call ``get_tracer(__name__)`` and open spans freely; until
:func:`configure_telemetry` installs an SDK provider every span is a no-op.
"""

from __future__ import annotations

import sys

from opentelemetry import trace

ATTR_RPC_METHOD = "mcp.rpc.method"
ATTR_RPC_ERROR_CODE = "mcp.rpc.error_code"
ATTR_TOOL_NAME = "mcp.tool.name"
ATTR_TOOL_IS_ERROR = "mcp.tool.is_error"
ATTR_UPSTREAM_PATH = "earnings.upstream.path"
ATTR_UPSTREAM_STATUS = "earnings.upstream.status"
ATTR_MODEL = "earnings.ai.model"
ATTR_PROVIDER = "earnings.ai.provider"

_INSTRUMENTATION_NAME = "earnings_mcp"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(otlp_endpoint: str | None = None, *, service_name: str = "earnings-mcp-server") -> None:
    """Install an SDK tracer provider (requires the ``otel`` extra).

    Spans go to *otlp_endpoint* over gRPC when given, otherwise to stderr as
    JSON; stdout is reserved for protocol frames.
    """
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor
    except ImportError as exc:
        raise ImportError("opentelemetry-sdk is required for tracing: pip install earnings-mcp[otel]") from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError as exc:
            raise ImportError(
                "opentelemetry-exporter-otlp is required for OTLP export: pip install earnings-mcp[otel]"
            ) from exc
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    trace.set_tracer_provider(provider)
