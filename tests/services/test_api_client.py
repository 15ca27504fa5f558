"""Tests for the upstream REST client, using httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from earnings_mcp.config import ServerConfig
from earnings_mcp.errors import UpstreamError, UpstreamTimeoutError
from earnings_mcp.services.api_client import EarningsApiClient


def _client(
    handler: Any,
    *,
    seen: list[httpx.Request] | None = None,
    config: ServerConfig | None = None,
) -> EarningsApiClient:
    def record(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    return EarningsApiClient.from_config(
        config or ServerConfig(api_url="https://api.test/"),
        transport=httpx.MockTransport(record),
    )


def _json(payload: Any, status: int = 200) -> Any:
    return lambda request: httpx.Response(status, content=json.dumps(payload).encode())


class TestRequests:
    async def test_fetch_portfolios(self) -> None:
        seen: list[httpx.Request] = []
        client = _client(_json([{"id": 1}, "junk"]), seen=seen)
        assert await client.fetch_portfolios() == [{"id": 1}]
        assert str(seen[0].url) == "https://api.test/api/portfolios"

    async def test_dashboard_query_param(self) -> None:
        seen: list[httpx.Request] = []
        client = _client(_json({"data": []}), seen=seen)
        await client.fetch_dashboard_data(42)
        assert seen[0].url.path == "/api/dashboard-data"
        assert seen[0].url.params["groupId"] == "42"

    async def test_stock_symbol_uppercased(self) -> None:
        seen: list[httpx.Request] = []
        client = _client(_json({"quote": {}}), seen=seen)
        await client.fetch_stock_details("brk.b")
        assert seen[0].url.path == "/api/stock-details/BRK.B"

    async def test_score_path(self) -> None:
        seen: list[httpx.Request] = []
        client = _client(_json({"total_score": 50}), seen=seen)
        assert await client.fetch_portfolio_score(7) == {"total_score": 50}
        assert seen[0].url.path == "/api/scoring/7"

    async def test_default_headers(self) -> None:
        seen: list[httpx.Request] = []
        await _client(_json([]), seen=seen).fetch_portfolios()
        headers = seen[0].headers
        assert headers["user-agent"] == "earnings-mcp-server/1.0.0"
        assert headers["accept"] == "application/json"
        assert "x-auth-token" not in headers

    async def test_shared_secret_header(self) -> None:
        seen: list[httpx.Request] = []
        config = ServerConfig(api_url="https://api.test", shared_secret="tok")
        await _client(_json([]), seen=seen, config=config).fetch_portfolios()
        assert seen[0].headers["x-auth-token"] == "tok"

    async def test_cookie_header(self) -> None:
        seen: list[httpx.Request] = []
        config = ServerConfig(api_url="https://api.test", auth_cookie="session=abc")
        await _client(_json([]), seen=seen, config=config).fetch_portfolios()
        assert seen[0].headers["cookie"] == "session=abc"


class TestFailures:
    async def test_not_found(self) -> None:
        client = _client(lambda r: httpx.Response(404, text="no such stock"))
        with pytest.raises(UpstreamError) as info:
            await client.fetch_stock_details("ZZZZ")
        assert info.value.status == 404
        assert info.value.detail == "no such stock"
        assert "Resource not found" in info.value.user_message()

    async def test_body_snippet_capped(self) -> None:
        client = _client(lambda r: httpx.Response(500, text="e" * 1000))
        with pytest.raises(UpstreamError) as info:
            await client.fetch_portfolios()
        assert len(info.value.detail) == 200

    async def test_transport_error_is_timeout(self) -> None:
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamTimeoutError):
            await _client(boom).fetch_portfolios()

    async def test_read_timeout(self) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError):
            await _client(slow).fetch_portfolio_score(1)

    async def test_invalid_json(self) -> None:
        client = _client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamError, match="not valid JSON"):
            await client.fetch_portfolios()

    async def test_wrong_shape(self) -> None:
        with pytest.raises(UpstreamError, match="expected a list"):
            await _client(_json({"id": 1})).fetch_portfolios()
        with pytest.raises(UpstreamError, match="expected an object"):
            await _client(_json([1, 2])).fetch_stock_details("AAPL")
