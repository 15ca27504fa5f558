"""Tests for the AI analysis tool handlers."""

from __future__ import annotations

import json
from typing import Any

import pytest

from earnings_mcp.errors import InferenceNotConfiguredError
from earnings_mcp.tools.ai import (
    GENERAL_ANALYSIS,
    SENTIMENT_MAX,
    SENTIMENT_MIN,
    analyze_portfolio,
    analyze_stock,
    build_prompt,
    clamp_top_n,
    compare_portfolios,
    comprehensive_stock_analysis,
    market_sentiment,
)
from tests.helpers import PORTFOLIOS, make_api, make_context, make_inference, sample


def _args(**values: Any) -> dict[str, Any]:
    return {"question": None, "response_format": "markdown", **values}


class TestBuildPrompt:
    def test_question_replaces_instructions(self) -> None:
        prompt = build_prompt("CTX", "Is it cheap?", "INSTRUCTIONS", "stock")
        assert "Question: Is it cheap?" in prompt
        assert "INSTRUCTIONS" not in prompt
        assert "CTX" in prompt

    def test_default_instructions(self) -> None:
        prompt = build_prompt("CTX", None, "INSTRUCTIONS", "portfolio")
        assert prompt.startswith("Analyze this portfolio data")
        assert prompt.endswith("INSTRUCTIONS")


class TestClampTopN:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(50, SENTIMENT_MAX), (1, SENTIMENT_MIN), (-4, SENTIMENT_MIN), (7, 7), (6.9, 6), (None, 5), (0, 5), (0.0, 5)],
    )
    def test_clamp(self, value: Any, expected: int) -> None:
        assert clamp_top_n(value) == expected


class TestNotConfigured:
    @pytest.mark.parametrize(
        ("handler", "args"),
        [
            (analyze_portfolio, _args(group_id=1)),
            (analyze_stock, _args(symbol="AAPL")),
            (compare_portfolios, _args(portfolio_id_a=1, portfolio_id_b=2)),
            (market_sentiment, _args(top_n=5)),
            (comprehensive_stock_analysis, _args(symbol="AAPL")),
        ],
    )
    async def test_fails_before_fetching(self, handler: Any, args: dict[str, Any]) -> None:
        api = make_api()
        ctx = make_context(api=api, inference=make_inference(configured=False))
        with pytest.raises(InferenceNotConfiguredError):
            await handler(ctx, args)
        api.fetch_portfolios.assert_not_awaited()
        api.fetch_stock_details.assert_not_awaited()


class TestAnalyzePortfolio:
    async def test_markdown(self) -> None:
        inference = make_inference("Well diversified.")
        ctx = make_context(inference=inference)
        result = await analyze_portfolio(ctx, _args(group_id=1, question="Is it too concentrated?"))
        text = result.text
        assert text.startswith("# AI Analysis: Buffett Value")
        assert "**Question**: Is it too concentrated?" in text
        assert "Well diversified." in text
        assert "*Based on 2 holdings | CAGR: 14.2% | Sharpe: 1.12*" in text

        prompt = inference.complete.call_args.args[0]
        assert "Question: Is it too concentrated?" in prompt
        assert "- AAPL: 25.0%" in prompt

    async def test_structured(self) -> None:
        result = await analyze_portfolio(make_context(), _args(group_id=1, response_format="json"))
        data = result.structured_content
        assert data is not None
        assert data["question"] == GENERAL_ANALYSIS
        assert data["analysis"] == "Looks solid."
        assert data["context_summary"] == {"holdings_count": 2, "cagr": 0.142, "sharpe": 1.12, "score": 71.4}

    async def test_unknown_portfolio(self) -> None:
        inference = make_inference()
        result = await analyze_portfolio(make_context(inference=inference), _args(group_id=99))
        assert result.is_error
        assert result.text == "Portfolio 99 not found."
        inference.complete.assert_not_awaited()

    async def test_context_bounded(self) -> None:
        holdings = [{"symbol": f"S{i}", "allocation": 0.001} for i in range(1000)]
        api = make_api(fetch_dashboard_data={"data": holdings})
        inference = make_inference()
        await analyze_portfolio(make_context(api=api, inference=inference), _args(group_id=1))
        prompt = inference.complete.call_args.args[0]
        assert "S10:" not in prompt
        assert len(prompt) < 4000 + 1000


class TestAnalyzeStock:
    async def test_markdown(self) -> None:
        result = await analyze_stock(make_context(), _args(symbol="AAPL"))
        assert result.text.startswith("# AI Analysis: AAPL - Apple Inc.")
        assert "*Price: $227.50 | P/E: 34.2 | Held by 7 portfolios*" in result.text

    async def test_not_found(self) -> None:
        ctx = make_context(api=make_api(fetch_stock_details={"quote": {}}))
        result = await analyze_stock(ctx, _args(symbol="NOPE"))
        assert result.is_error
        assert result.text == "Stock NOPE not found."


class TestComparePortfolios:
    async def test_compare(self) -> None:
        result = await compare_portfolios(
            make_context(), _args(portfolio_id_a=1, portfolio_id_b=2, response_format="json")
        )
        data = result.structured_content
        assert data is not None
        assert data["portfolio_a"]["name"] == "Buffett Value"
        assert data["portfolio_b"]["name"] == "WSB Momentum"
        assert "# AI Comparison" not in result.text

    async def test_missing_ids_reported(self) -> None:
        result = await compare_portfolios(make_context(), _args(portfolio_id_a=1, portfolio_id_b=77))
        assert result.is_error
        assert result.text == "Portfolio not found: 77."


class TestMarketSentiment:
    async def test_top_n_clamped_and_sorted(self) -> None:
        inference = make_inference()
        result = await market_sentiment(make_context(inference=inference), _args(top_n=50, response_format="json"))
        data = result.structured_content
        assert data is not None
        assert data["top_n"] == SENTIMENT_MAX
        # unrated portfolio 3 is skipped
        assert [p["id"] for p in data["portfolios"]] == [2, 1]
        assert "Top 10 Performing Portfolios" in inference.complete.call_args.args[0]

    async def test_no_rated_portfolios(self) -> None:
        unrated = [p for p in sample(PORTFOLIOS) if p["last_score"] is None]
        inference = make_inference()
        ctx = make_context(api=make_api(fetch_portfolios=unrated), inference=inference)
        result = await market_sentiment(ctx, _args(top_n=5))
        assert not result.is_error
        assert result.text == "No rated portfolios found to analyze."
        inference.complete.assert_not_awaited()

    async def test_no_rated_portfolios_json(self) -> None:
        unrated = [p for p in sample(PORTFOLIOS) if p["last_score"] is None]
        ctx = make_context(api=make_api(fetch_portfolios=unrated))
        result = await market_sentiment(ctx, _args(top_n=5, response_format="json"))
        assert not result.is_error
        data = json.loads(result.text)
        assert data["portfolios"] == []
        assert data["analysis"] is None
        assert data["top_n"] == 5


class TestComprehensiveStockAnalysis:
    async def test_indicators(self) -> None:
        inference = make_inference()
        result = await comprehensive_stock_analysis(
            make_context(inference=inference), _args(symbol="AAPL", response_format="json")
        )
        data = result.structured_content
        assert data is not None
        assert data["indicators"]["rs_rank_1m"] == 87
        assert data["indicators"]["sma"]["200"]["position"] == "above"
        prompt = inference.complete.call_args.args[0]
        assert "Technicals:" in prompt
        assert "Verdict" in prompt

    async def test_footer(self) -> None:
        result = await comprehensive_stock_analysis(make_context(), _args(symbol="AAPL"))
        assert "RS Rank (1M): 87 | SMA20 above, SMA50 below, SMA200 above" in result.text
