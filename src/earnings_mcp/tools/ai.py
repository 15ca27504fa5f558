"""AI-assisted analysis tools.

Every handler checks that inference is configured before touching the data
provider, builds a bounded context from the fetched data and sends it with
the optional user question as one system+user completion.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from earnings_mcp.errors import InferenceNotConfiguredError
from earnings_mcp.formatting import NA, as_number, format_money, format_number, format_percent
from earnings_mcp.protocol.models import ToolResult
from earnings_mcp.services.context import (
    build_comparison_context,
    build_comprehensive_context,
    build_portfolio_context,
    build_sentiment_context,
    build_stock_context,
    technical_snapshot,
)
from earnings_mcp.tools.registry import Tool, ToolContext
from earnings_mcp.tools.schema import (
    NumberField,
    ToolSchema,
    group_id_field,
    question_field,
    response_format_field,
    symbol_field,
)
from earnings_mcp.tools.stocks import get_quote, stock_not_found

SENTIMENT_MIN = 3
SENTIMENT_MAX = 10
SENTIMENT_DEFAULT = 5

GENERAL_ANALYSIS = "General analysis"

_PORTFOLIO_INSTRUCTIONS = """Provide:
1. Overall assessment (1-2 sentences)
2. Strengths (2-3 bullet points)
3. Areas for improvement (2-3 bullet points)
4. One actionable recommendation"""

_STOCK_INSTRUCTIONS = """Provide:
1. Valuation assessment (1-2 sentences)
2. Key strengths (2-3 bullet points)
3. Key risks (2-3 bullet points)
4. One-liner summary"""

_COMPARE_INSTRUCTIONS = (
    "Compare these two portfolios. Which one offers better risk-adjusted returns? What are the trade-offs?"
)

_SENTIMENT_INSTRUCTIONS = (
    "Based on these winning portfolios, what market trends or strategies seem to be favoring right now? "
    "Synthesize a market sentiment summary."
)

_COMPREHENSIVE_INSTRUCTIONS = """Perform a comprehensive analysis of this stock.
1. Valuation Analysis: Is it overvalued or undervalued based on PE/PEG?
2. Technical Trend: What is the trend based on SMAs and Returns?
3. Momentum: What does the RS Rank indicate?
4. Verdict: Bullish, Bearish, or Neutral?"""


def build_prompt(context: str, question: str | None, instructions: str, subject: str) -> str:
    """Combine the bounded context with either the user question or default instructions."""
    if question:
        return f"Here is the {subject} data:\n\n{context}\n\nQuestion: {question}\n\nProvide a concise, data-driven answer."
    return f"Analyze this {subject} data and provide key insights:\n\n{context}\n\n{instructions}"


def clamp_top_n(value: Any) -> int:
    """Clamp *value* into [3, 10]; a missing or zero count means the default of 5."""
    number = as_number(value)
    if not number:
        number = SENTIMENT_DEFAULT
    return int(min(max(number, SENTIMENT_MIN), SENTIMENT_MAX))


def _require_inference(ctx: ToolContext) -> None:
    if not ctx.inference.is_configured:
        raise InferenceNotConfiguredError()


def _find(portfolios: Sequence[dict[str, Any]], group_id: int) -> dict[str, Any] | None:
    return next((p for p in portfolios if p.get("id") == group_id), None)


def _render(title: str, question: str | None, analysis: str, footer: str) -> str:
    lines = [f"# {title}", ""]
    if question:
        lines += [f"**Question**: {question}", ""]
    lines += ["## Analysis", "", analysis, "", "---", f"*{footer}*"]
    return "\n".join(lines)


async def analyze_portfolio(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    _require_inference(ctx)
    group_id, question = args["group_id"], args["question"]

    portfolio = _find(await ctx.api.fetch_portfolios(), group_id)
    if portfolio is None:
        return ToolResult.error(f"Portfolio {group_id} not found.")
    dashboard = await ctx.api.fetch_dashboard_data(group_id)
    holdings = [h for h in dashboard.get("data") or [] if isinstance(h, dict)]

    context = build_portfolio_context(portfolio, holdings, ctx.config.ai.max_context_chars)
    analysis = await ctx.inference.complete(build_prompt(context, question, _PORTFOLIO_INSTRUCTIONS, "portfolio"))

    output = {
        "group_id": group_id,
        "portfolio_name": portfolio.get("name"),
        "question": question or GENERAL_ANALYSIS,
        "analysis": analysis,
        "context_summary": {
            "holdings_count": len(holdings),
            "cagr": portfolio.get("cagr"),
            "sharpe": portfolio.get("sharpe"),
            "score": portfolio.get("last_score"),
        },
    }
    footer = (
        f"Based on {len(holdings)} holdings | CAGR: {format_percent(portfolio.get('cagr'))} "
        f"| Sharpe: {format_number(portfolio.get('sharpe'))}"
    )
    markdown = _render(f"AI Analysis: {portfolio.get('name')}", question, analysis, footer)
    return ToolResult.from_structured(output, args["response_format"], markdown)


async def analyze_stock(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    _require_inference(ctx)
    symbol, question = args["symbol"], args["question"]

    details = await ctx.api.fetch_stock_details(symbol)
    q = get_quote(details)
    if q is None:
        return stock_not_found(symbol)
    holders = details.get("holdings") or []

    context = build_stock_context(details, ctx.config.ai.max_context_chars)
    analysis = await ctx.inference.complete(build_prompt(context, question, _STOCK_INSTRUCTIONS, "stock"))

    output = {
        "symbol": symbol,
        "name": q.get("name"),
        "question": question or GENERAL_ANALYSIS,
        "analysis": analysis,
        "context_summary": {
            "price": q.get("price"),
            "pe_ratio": q.get("pe_ratio"),
            "market_cap": q.get("market_cap"),
            "held_by_portfolios": len(holders),
        },
    }
    footer = (
        f"Price: {format_money(q.get('price'))} | P/E: {format_number(q.get('pe_ratio'), 1)} "
        f"| Held by {len(holders)} portfolios"
    )
    markdown = _render(f"AI Analysis: {symbol} - {q.get('name') or 'Unknown'}", question, analysis, footer)
    return ToolResult.from_structured(output, args["response_format"], markdown)


async def compare_portfolios(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    _require_inference(ctx)
    id_a, id_b, question = args["portfolio_id_a"], args["portfolio_id_b"], args["question"]

    portfolios = await ctx.api.fetch_portfolios()
    pa, pb = _find(portfolios, id_a), _find(portfolios, id_b)
    missing = [str(pid) for pid, p in ((id_a, pa), (id_b, pb)) if p is None]
    if pa is None or pb is None:
        return ToolResult.error(f"Portfolio not found: {', '.join(missing)}.")

    context = build_comparison_context(pa, pb, ctx.config.ai.max_context_chars)
    analysis = await ctx.inference.complete(build_prompt(context, question, _COMPARE_INSTRUCTIONS, "portfolio comparison"))

    output = {
        "portfolio_a": _portfolio_summary(pa),
        "portfolio_b": _portfolio_summary(pb),
        "question": question or GENERAL_ANALYSIS,
        "analysis": analysis,
    }
    footer = (
        f"{pa.get('name')}: Score {format_number(pa.get('last_score'), 1)} "
        f"| {pb.get('name')}: Score {format_number(pb.get('last_score'), 1)}"
    )
    markdown = _render(f"AI Comparison: {pa.get('name')} vs {pb.get('name')}", question, analysis, footer)
    return ToolResult.from_structured(output, args["response_format"], markdown)


async def market_sentiment(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    _require_inference(ctx)
    top_n, question = clamp_top_n(args["top_n"]), args["question"]

    rated = [p for p in await ctx.api.fetch_portfolios() if as_number(p.get("last_score")) is not None]
    top = sorted(rated, key=lambda p: as_number(p.get("last_score")) or 0.0, reverse=True)[:top_n]
    if not top:
        output = {"top_n": top_n, "portfolios": [], "question": question or GENERAL_ANALYSIS, "analysis": None}
        return ToolResult.from_structured(output, args["response_format"], "No rated portfolios found to analyze.")

    context = build_sentiment_context(top, top_n, ctx.config.ai.max_context_chars)
    analysis = await ctx.inference.complete(build_prompt(context, question, _SENTIMENT_INSTRUCTIONS, "market"))

    output = {
        "top_n": top_n,
        "portfolios": [_portfolio_summary(p) for p in top],
        "question": question or GENERAL_ANALYSIS,
        "analysis": analysis,
    }
    footer = f"Based on the top {len(top)} portfolios by score"
    markdown = _render("AI Market Sentiment", question, analysis, footer)
    return ToolResult.from_structured(output, args["response_format"], markdown)


async def comprehensive_stock_analysis(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    _require_inference(ctx)
    symbol, question = args["symbol"], args["question"]

    q = get_quote(await ctx.api.fetch_stock_details(symbol))
    if q is None:
        return stock_not_found(symbol)

    indicators = technical_snapshot(q)
    context = build_comprehensive_context(symbol, q, ctx.config.ai.max_context_chars)
    analysis = await ctx.inference.complete(build_prompt(context, question, _COMPREHENSIVE_INSTRUCTIONS, "stock"))

    output = {
        "symbol": symbol,
        "name": q.get("name"),
        "question": question or GENERAL_ANALYSIS,
        "analysis": analysis,
        "indicators": indicators,
    }
    rs_rank = indicators["rs_rank_1m"]
    trend = ", ".join(
        f"SMA{period} {sma['position'] or NA}" for period, sma in indicators["sma"].items()
    )
    footer = (
        f"PEG: {format_number(indicators['peg_ratio'])} "
        f"| RS Rank (1M): {rs_rank if rs_rank is not None else NA} | {trend}"
    )
    markdown = _render(f"Comprehensive Analysis: {symbol} - {q.get('name') or 'Unknown'}", question, analysis, footer)
    return ToolResult.from_structured(output, args["response_format"], markdown)


def _portfolio_summary(p: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": p.get("id"),
        "name": p.get("name"),
        "score": p.get("last_score"),
        "cagr": p.get("cagr"),
        "sharpe": p.get("sharpe"),
        "member_count": p.get("member_count"),
    }


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------

_AI_NOTE = "Note: Requires AI inference credentials (EARNINGS_AI_API_KEY, or CLOUDFLARE_API_TOKEN with CLOUDFLARE_ACCOUNT_ID)."

AI_TOOLS = (
    Tool(
        name="earnings_ai_analyze_portfolio",
        title="AI Analyze Portfolio",
        description=f"""Use AI to analyze a portfolio and provide insights.

The AI will analyze the portfolio's:
- Holdings composition and allocation
- Performance metrics (CAGR, Sharpe, Sortino)
- Risk characteristics (max drawdown)
- Overall score and quality

Args:
  - group_id (number): Portfolio/group ID to analyze
  - question (string, optional): Specific question about the portfolio
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "Analyze portfolio 1" -> earnings_ai_analyze_portfolio with group_id=1
  - "Is portfolio 2 too concentrated?" -> earnings_ai_analyze_portfolio with group_id=2, question="Is this portfolio too concentrated?"

{_AI_NOTE}""",
        schema=ToolSchema(
            params={
                "group_id": group_id_field("Portfolio/group ID to analyze"),
                "question": question_field("Specific question about the portfolio"),
                "response_format": response_format_field(),
            }
        ),
        handler=analyze_portfolio,
        idempotent=False,
    ),
    Tool(
        name="earnings_ai_analyze_stock",
        title="AI Analyze Stock",
        description=f"""Use AI to analyze a stock and provide insights.

The AI will analyze the stock's:
- Current valuation (P/E, P/S, market cap)
- Performance metrics (returns, volatility, Sharpe)
- Portfolio holdings context

Args:
  - symbol (string): Stock ticker symbol to analyze
  - question (string, optional): Specific question about the stock
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "Analyze AAPL" -> earnings_ai_analyze_stock with symbol="AAPL"
  - "Is MSFT overvalued?" -> earnings_ai_analyze_stock with symbol="MSFT", question="Is this stock overvalued?"

{_AI_NOTE}""",
        schema=ToolSchema(
            params={
                "symbol": symbol_field("Stock ticker symbol to analyze"),
                "question": question_field("Specific question about the stock"),
                "response_format": response_format_field(),
            }
        ),
        handler=analyze_stock,
        idempotent=False,
    ),
    Tool(
        name="earnings_ai_compare_portfolios",
        title="AI Compare Portfolios",
        description=f"""Compare two portfolios side-by-side using AI.

Args:
  - portfolio_id_a (number): First portfolio ID
  - portfolio_id_b (number): Second portfolio ID
  - question (string, optional): Specific question about the comparison
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "Compare portfolios 1 and 4" -> earnings_ai_compare_portfolios with portfolio_id_a=1, portfolio_id_b=4

{_AI_NOTE}""",
        schema=ToolSchema(
            params={
                "portfolio_id_a": group_id_field("First portfolio ID"),
                "portfolio_id_b": group_id_field("Second portfolio ID"),
                "question": question_field(),
                "response_format": response_format_field(),
            }
        ),
        handler=compare_portfolios,
        idempotent=False,
    ),
    Tool(
        name="earnings_ai_market_sentiment",
        title="AI Market Sentiment",
        description=f"""Analyze market trends based on the top-scoring portfolios.

Args:
  - top_n (number): Number of top portfolios to analyze (default 5, clamped to 3-10)
  - question (string, optional): Specific question about market trends
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "What is the market favoring right now?" -> earnings_ai_market_sentiment

{_AI_NOTE}""",
        schema=ToolSchema(
            params={
                "top_n": NumberField(
                    default=SENTIMENT_DEFAULT,
                    description=f"Number of top portfolios to analyze (default {SENTIMENT_DEFAULT}, max {SENTIMENT_MAX})",
                ),
                "question": question_field(),
                "response_format": response_format_field(),
            }
        ),
        handler=market_sentiment,
        idempotent=False,
    ),
    Tool(
        name="earnings_ai_comprehensive_stock_analysis",
        title="AI Comprehensive Stock Analysis",
        description=f"""Deep-dive analysis covering valuation and technical trends (short and long term).

Covers P/E, forward P/E, P/S and PEG (estimated from EPS growth when not reported),
price position against the 20/50/200-day moving averages, 1-month RS rank and returns.

Args:
  - symbol (string): Stock ticker symbol
  - question (string, optional): Specific request
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "Give me a full technical and valuation read on NVDA" -> earnings_ai_comprehensive_stock_analysis with symbol="NVDA"

{_AI_NOTE}""",
        schema=ToolSchema(
            params={
                "symbol": symbol_field("Stock ticker symbol"),
                "question": question_field("Optional specific request"),
                "response_format": response_format_field(),
            }
        ),
        handler=comprehensive_stock_analysis,
        idempotent=False,
    ),
)
