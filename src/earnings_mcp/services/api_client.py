"""EarningsApiClient — read-only access to the upstream financial-data REST API.

Every call opens a short-lived :class:`httpx.AsyncClient` bounded by the
configured timeout. Failures are raised as :class:`UpstreamError` subclasses
so handlers and the dispatcher can classify them without parsing messages.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from earnings_mcp import SERVER_NAME, __version__
from earnings_mcp.errors import UpstreamError, UpstreamTimeoutError
from earnings_mcp.utils.telemetry import ATTR_UPSTREAM_PATH, ATTR_UPSTREAM_STATUS, get_tracer

if TYPE_CHECKING:
    from earnings_mcp.config import ServerConfig

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

_BODY_SNIPPET = 200


class EarningsApiClient:
    """Thin async wrapper over the ``/api/*`` endpoints.

    Usage::

        client = EarningsApiClient.from_config(config)
        portfolios = await client.fetch_portfolios()
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "User-Agent": f"{SERVER_NAME}/{__version__}",
            "Accept": "application/json",
            **(headers or {}),
        }
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: ServerConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> EarningsApiClient:
        """Build a client for the configured provider URL, credentials and timeout."""
        return cls(
            config.api_url,
            headers=config.auth_headers(),
            timeout=config.request_timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_portfolios(self) -> list[dict[str, Any]]:
        """All portfolios with their stats."""
        data = await self._get("/api/portfolios")
        if not isinstance(data, list):
            raise UpstreamError(None, f"expected a list of portfolios, got {type(data).__name__}")
        return [p for p in data if isinstance(p, dict)]

    async def fetch_dashboard_data(self, group_id: int) -> dict[str, Any]:
        """Holdings for one portfolio: ``{"lastUpdated": ..., "data": [...]}``."""
        data = await self._get("/api/dashboard-data", params={"groupId": str(group_id)})
        return _expect_object(data, "dashboard data")

    async def fetch_stock_details(self, symbol: str) -> dict[str, Any]:
        """Quote, stats, price history, earnings and holders for *symbol*."""
        data = await self._get(f"/api/stock-details/{quote(symbol.upper(), safe='')}")
        return _expect_object(data, "stock details")

    async def fetch_portfolio_score(self, group_id: int) -> dict[str, Any]:
        """Scoring breakdown for one portfolio."""
        data = await self._get(f"/api/scoring/{group_id}")
        return _expect_object(data, "portfolio score")

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        with _tracer.start_as_current_span("upstream.request") as span:
            span.set_attribute(ATTR_UPSTREAM_PATH, path)
            try:
                async with httpx.AsyncClient(
                    base_url=self._base_url,
                    headers=self._headers,
                    timeout=self._timeout,
                    transport=self._transport,
                ) as client:
                    response = await client.get(path, params=params)
            except httpx.TransportError as exc:
                logger.warning("Upstream request to %s failed: %s", path, exc)
                raise UpstreamTimeoutError(f"{type(exc).__name__}: {exc}") from exc

            span.set_attribute(ATTR_UPSTREAM_STATUS, response.status_code)
            if response.is_error:
                logger.warning("Upstream %s returned HTTP %d", path, response.status_code)
                raise UpstreamError(response.status_code, response.text[:_BODY_SNIPPET])

            try:
                return response.json()
            except ValueError as exc:
                raise UpstreamError(response.status_code, "response was not valid JSON") from exc


def _expect_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise UpstreamError(None, f"expected an object for {what}, got {type(data).__name__}")
    return data
