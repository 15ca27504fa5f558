"""Sample upstream payloads and context builders shared by the test suite."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from earnings_mcp.config import InferenceConfig, ServerConfig
from earnings_mcp.tools.registry import ToolContext

PORTFOLIOS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Buffett Value",
        "description": None,
        "type": "guru",
        "member_count": 12,
        "cagr": 0.142,
        "std_dev": 0.18,
        "max_drawdown": -0.21,
        "sharpe": 1.12,
        "sortino": 1.55,
        "correlation_spy": 0.82,
        "change_1d": 0.004,
        "last_score": 71.4,
        "stats_updated_at": "2026-10-01",
    },
    {
        "id": 2,
        "name": "WSB Momentum",
        "description": None,
        "type": "community",
        "member_count": 8,
        "cagr": 31.5,
        "max_drawdown": -0.45,
        "sharpe": 0.91,
        "sortino": 1.02,
        "last_score": 84.0,
        "stats_updated_at": "2026-10-01",
    },
    {
        "id": 3,
        "name": "Unrated",
        "type": None,
        "member_count": 3,
        "cagr": None,
        "max_drawdown": None,
        "sharpe": None,
        "sortino": None,
        "last_score": None,
        "stats_updated_at": None,
    },
]

DASHBOARD: dict[str, Any] = {
    "lastUpdated": "2026-10-18T21:00:00Z",
    "data": [
        {
            "symbol": "AAPL",
            "name": "Apple Inc.",
            "allocation": 0.25,
            "price": 227.5,
            "forward_peg": 2.1,
            "change_1d": 0.012,
            "change_ytd": -0.034,
        },
        {
            "symbol": "KO",
            "name": "Coca-Cola",
            "allocation": 0.1,
            "price": 61.2,
            "forward_peg": None,
            "change_1d": None,
            "change_ytd": 0.08,
        },
    ],
}

SCORE: dict[str, Any] = {
    "group_id": 1,
    "total_score": 71.4,
    "holdings_score": 68.2,
    "performance_score": 74.9,
    "components": {"quality": 80.1, "valuation": 55.0, "momentum": 62.3, "diversification": 70.0},
    "raw_metrics": {},
    "stock_details": [
        {"symbol": f"S{i}", "weight": 0.1, "score": float(i * 10), "raw": {}} for i in range(1, 8)
    ],
}

STOCK_DETAILS: dict[str, Any] = {
    "quote": {
        "symbol": "AAPL",
        "name": "Apple Inc.",
        "price": 227.5,
        "market_cap": 3.45e12,
        "pe_ratio": 34.2,
        "forward_pe": 29.8,
        "ps_ratio": 8.9,
        "dividend_yield": 0.0044,
        "fifty_two_week_high": 237.2,
        "fifty_two_week_high_change_percent": -0.041,
        "change_percent": 0.012,
        "volume": 51234567,
        "updated_at": "2026-10-18",
        "volatility": 0.24,
        "sharpe_ratio_1y": 1.3,
        "return_1y": 0.28,
        "return_ytd": 0.11,
        "max_drawdown": -0.17,
        "peg_ratio": None,
        "eps_current_year": 6.7,
        "eps_next_year": 7.4,
        "sma_20": 225.0,
        "sma_50": 229.9,
        "sma_200": 210.3,
        "rs_rank_1m": '<svg class="rs-badge" data-score="87"><text>87</text></svg>',
        "change_ytd": 0.11,
        "change_1y": 0.28,
        "delta_52w_high": -4.1,
    },
    "history": [
        {"date": "2025-10-20", "close": 180.0},
        {"date": "2026-04-20", "close": 201.0},
        {"date": "2026-10-17", "close": 224.8},
    ],
    "earnings": [
        {"symbol": "AAPL", "fiscal_date_ending": f"2026-0{q}-30", "eps_estimate": 1.5, "eps_actual": 1.6}
        for q in range(1, 7)
    ],
    "holdings": [{"id": i, "name": f"Portfolio {i}", "allocation": 0.05} for i in range(1, 8)],
}


def sample(data: Any) -> Any:
    """Deep copy of a sample payload, safe to mutate in a test."""
    return copy.deepcopy(data)


def make_config(**overrides: Any) -> ServerConfig:
    return ServerConfig(**overrides)


def configured_ai() -> InferenceConfig:
    return InferenceConfig(model="openai/gpt-4o-mini", api_key="sk-test")


def make_api(**returns: Any) -> MagicMock:
    """A stand-in for EarningsApiClient with AsyncMock fetchers.

    Keyword arguments map fetcher names to return values or exceptions.
    """
    api = MagicMock()
    defaults: dict[str, Any] = {
        "fetch_portfolios": sample(PORTFOLIOS),
        "fetch_dashboard_data": sample(DASHBOARD),
        "fetch_stock_details": sample(STOCK_DETAILS),
        "fetch_portfolio_score": sample(SCORE),
    }
    defaults.update(returns)
    for name, value in defaults.items():
        if isinstance(value, BaseException):
            setattr(api, name, AsyncMock(side_effect=value))
        else:
            setattr(api, name, AsyncMock(return_value=value))
    return api


def make_inference(reply: str = "Looks solid.", *, configured: bool = True) -> MagicMock:
    inference = MagicMock()
    inference.is_configured = configured
    inference.complete = AsyncMock(return_value=reply)
    return inference


def make_context(
    api: MagicMock | None = None,
    inference: MagicMock | None = None,
    config: ServerConfig | None = None,
) -> ToolContext:
    return ToolContext(
        config=config or make_config(ai=configured_ai()),
        api=api or make_api(),
        inference=inference or make_inference(),
    )
