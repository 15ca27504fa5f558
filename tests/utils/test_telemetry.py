"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from opentelemetry import trace

from earnings_mcp.utils.telemetry import (
    ATTR_RPC_METHOD,
    ATTR_TOOL_NAME,
    ATTR_UPSTREAM_PATH,
    _INSTRUMENTATION_NAME,
    configure_telemetry,
    get_tracer,
)


class TestGetTracer:
    def test_returns_tracer(self) -> None:
        tracer = get_tracer("test.module")
        assert isinstance(tracer, trace.Tracer)

    def test_default_name(self) -> None:
        assert _INSTRUMENTATION_NAME == "earnings_mcp"
        assert isinstance(get_tracer(), trace.Tracer)

    def test_noop_span(self) -> None:
        """Without SDK configured, spans are no-ops."""
        tracer = get_tracer("test.noop")
        with tracer.start_as_current_span("tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, "earnings_list_portfolios")


class TestConfigureTelemetry:
    def test_raises_without_sdk(self) -> None:
        with patch.dict("sys.modules", {"opentelemetry.sdk.resources": None}):
            with pytest.raises(ImportError, match="opentelemetry-sdk"):
                configure_telemetry()

    def test_otlp_raises_without_exporter(self) -> None:
        try:
            import opentelemetry.sdk.trace  # noqa: F401
        except ImportError:
            pytest.skip("opentelemetry-sdk not installed")

        original = trace.get_tracer_provider()
        with patch.dict(
            "sys.modules",
            {"opentelemetry.exporter.otlp.proto.grpc.trace_exporter": None},
        ):
            with pytest.raises(ImportError, match="opentelemetry-exporter-otlp"):
                configure_telemetry("http://localhost:4317")
        assert trace.get_tracer_provider() is original


class TestAttributeConstants:
    def test_namespaces(self) -> None:
        assert ATTR_RPC_METHOD.startswith("mcp.")
        assert ATTR_TOOL_NAME.startswith("mcp.")
        assert ATTR_UPSTREAM_PATH.startswith("earnings.")
