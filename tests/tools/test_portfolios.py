"""Tests for the portfolio tool handlers."""

from __future__ import annotations

import json
from typing import Any

from earnings_mcp.tools.portfolios import (
    TOP_STOCKS,
    get_portfolio_holdings,
    get_portfolio_score,
    list_portfolios,
)
from tests.helpers import SCORE, make_api, make_context, sample


def _list_args(**overrides: Any) -> dict[str, Any]:
    return {"limit": 20, "offset": 0, "response_format": "markdown", **overrides}


class TestListPortfolios:
    async def test_markdown(self) -> None:
        result = await list_portfolios(make_context(), _list_args())
        assert not result.is_error
        text = result.text
        assert text.startswith("# Portfolios (3)")
        assert "## Buffett Value (ID: 1)" in text
        assert "- **CAGR**: 14.20%" in text
        # already-scaled CAGR is not multiplied again
        assert "- **CAGR**: 31.50%" in text
        assert "- **Type**: guru" in text

    async def test_json_matches_structured(self) -> None:
        result = await list_portfolios(make_context(), _list_args(response_format="json"))
        data = json.loads(result.text)
        assert data == result.structured_content
        assert data["total"] == 3
        assert data["has_more"] is False
        assert data["portfolios"][0] == {
            "id": 1,
            "name": "Buffett Value",
            "type": "guru",
            "member_count": 12,
            "cagr": 0.142,
            "sharpe": 1.12,
            "sortino": 1.55,
            "max_drawdown": -0.21,
            "score": 71.4,
            "updated_at": "2026-10-01",
        }

    async def test_pagination(self) -> None:
        result = await list_portfolios(make_context(), _list_args(limit=2))
        assert result.structured_content is not None
        assert result.structured_content["count"] == 2
        assert result.structured_content["next_offset"] == 2
        assert "More portfolios available: use offset=2." in result.text

    async def test_offset_past_end(self) -> None:
        result = await list_portfolios(make_context(), _list_args(offset=10))
        assert result.text == "No portfolios at offset 10 (total: 3)."
        assert not result.is_error

    async def test_no_portfolios(self) -> None:
        ctx = make_context(api=make_api(fetch_portfolios=[]))
        result = await list_portfolios(ctx, _list_args())
        assert result.text == "No portfolios found."
        assert not result.is_error
        assert result.structured_content is not None
        assert result.structured_content["total"] == 0

    async def test_no_portfolios_json(self) -> None:
        ctx = make_context(api=make_api(fetch_portfolios=[]))
        result = await list_portfolios(ctx, _list_args(response_format="json"))
        data = json.loads(result.text)
        assert data == {
            "total": 0,
            "count": 0,
            "offset": 0,
            "has_more": False,
            "next_offset": None,
            "portfolios": [],
        }

    async def test_offset_past_end_json(self) -> None:
        result = await list_portfolios(make_context(), _list_args(offset=10, response_format="json"))
        data = json.loads(result.text)
        assert data["total"] == 3
        assert data["count"] == 0
        assert data["portfolios"] == []


class TestGetPortfolioHoldings:
    async def test_table(self) -> None:
        api = make_api()
        result = await get_portfolio_holdings(make_context(api=api), {"group_id": 1, "response_format": "markdown"})
        api.fetch_dashboard_data.assert_awaited_once_with(1)
        text = result.text
        assert text.startswith("# Portfolio 1 Holdings (2 stocks)")
        assert "*Last updated: 2026-10-18T21:00:00Z*" in text
        assert "| AAPL | Apple Inc. | 25.0% | $227.50 | 2.10 | +1.20% | -3.40% |" in text
        assert "| KO | Coca-Cola | 10.0% | $61.20 | N/A | N/A | +8.00% |" in text

    async def test_structured(self) -> None:
        result = await get_portfolio_holdings(make_context(), {"group_id": 1, "response_format": "json"})
        data = result.structured_content
        assert data is not None
        assert data["group_id"] == 1
        assert data["count"] == 2
        assert data["holdings"][1]["forward_peg"] is None

    async def test_empty(self) -> None:
        ctx = make_context(api=make_api(fetch_dashboard_data={"data": []}))
        result = await get_portfolio_holdings(ctx, {"group_id": 9, "response_format": "markdown"})
        assert result.text == "No holdings found for portfolio 9."

    async def test_empty_json(self) -> None:
        ctx = make_context(api=make_api(fetch_dashboard_data={"data": []}))
        result = await get_portfolio_holdings(ctx, {"group_id": 7, "response_format": "json"})
        assert not result.is_error
        data = json.loads(result.text)
        assert data == {"group_id": 7, "last_updated": None, "count": 0, "holdings": []}


class TestGetPortfolioScore:
    async def test_top_stocks_sorted(self) -> None:
        result = await get_portfolio_score(make_context(), {"group_id": 1, "response_format": "json"})
        data = result.structured_content
        assert data is not None
        assert data["stock_count"] == 7
        assert [s["symbol"] for s in data["top_stocks"]] == ["S7", "S6", "S5", "S4", "S3"]
        assert len(data["top_stocks"]) == TOP_STOCKS
        assert data["components"]["quality"] == 80.1

    async def test_markdown(self) -> None:
        result = await get_portfolio_score(make_context(), {"group_id": 1, "response_format": "markdown"})
        text = result.text
        assert "**Total Score**: 71.4 / 100" in text
        assert "- Quality: 80.1" in text
        assert text.index("**S7**") < text.index("**S6**")
        assert "**S2**" not in text

    async def test_without_components(self) -> None:
        score = sample(SCORE)
        score["components"] = None
        score["stock_details"] = []
        ctx = make_context(api=make_api(fetch_portfolio_score=score))
        result = await get_portfolio_score(ctx, {"group_id": 1, "response_format": "markdown"})
        assert "## Breakdown" not in result.text
        assert "Top 5 Stocks" not in result.text
