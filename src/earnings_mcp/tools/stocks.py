"""Stock tools: quote, full details and risk/return statistics."""

from __future__ import annotations

from typing import Any

from earnings_mcp.formatting import as_number, format_market_cap, format_money, format_number, format_percent
from earnings_mcp.protocol.models import ToolResult
from earnings_mcp.tools.registry import Tool, ToolContext
from earnings_mcp.tools.schema import BooleanField, ToolSchema, response_format_field, symbol_field

RECENT_EARNINGS = 4


def stock_not_found(symbol: str) -> ToolResult:
    return ToolResult.error(f"Stock {symbol} not found.")


def get_quote(details: dict[str, Any]) -> dict[str, Any] | None:
    """The ``quote`` object of a stock-details payload, if present."""
    quote = details.get("quote")
    return quote if isinstance(quote, dict) and quote else None


async def get_stock_quote(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    symbol = args["symbol"]
    q = get_quote(await ctx.api.fetch_stock_details(symbol))
    if q is None:
        return stock_not_found(symbol)

    output = {
        "symbol": _symbol(q, symbol),
        "name": q.get("name"),
        "price": as_number(q.get("price")),
        "change_percent": q.get("change_percent"),
        "market_cap": q.get("market_cap"),
        "pe_ratio": q.get("pe_ratio"),
        "forward_pe": q.get("forward_pe"),
        "ps_ratio": q.get("ps_ratio"),
        "dividend_yield": q.get("dividend_yield"),
        "fifty_two_week_high": q.get("fifty_two_week_high"),
        "fifty_two_week_high_change_percent": q.get("fifty_two_week_high_change_percent"),
        "volume": q.get("volume"),
        "updated_at": q.get("updated_at"),
    }

    lines = _header(output["symbol"], q)
    lines += ["", "## Valuation"]
    _bullet(lines, "Market Cap", q.get("market_cap"), format_market_cap)
    _bullet(lines, "P/E Ratio", q.get("pe_ratio"), format_number)
    _bullet(lines, "Forward P/E", q.get("forward_pe"), format_number)
    _bullet(lines, "P/S Ratio", q.get("ps_ratio"), format_number)
    _bullet(lines, "Dividend Yield", q.get("dividend_yield"), _pct)
    _bullet(lines, "Volume", q.get("volume"), lambda v: f"{as_number(v):,.0f}")
    lines += ["", "## 52-Week"]
    _bullet(lines, "52W High", q.get("fifty_two_week_high"), format_money)
    _bullet(
        lines,
        "From High",
        q.get("fifty_two_week_high_change_percent"),
        _pct,
        skip_zero=False,
    )

    return ToolResult.from_structured(output, args["response_format"], "\n".join(lines))


async def get_stock_details(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    symbol = args["symbol"]
    details = await ctx.api.fetch_stock_details(symbol)
    q = get_quote(details)
    if q is None:
        return stock_not_found(symbol)

    history = [h for h in details.get("history") or [] if isinstance(h, dict)]
    earnings = [e for e in details.get("earnings") or [] if isinstance(e, dict)]
    holders = [h for h in details.get("holdings") or [] if isinstance(h, dict)]

    output: dict[str, Any] = {
        "symbol": _symbol(q, symbol),
        "name": q.get("name"),
        "quote": {
            "price": as_number(q.get("price")),
            "change_percent": q.get("change_percent"),
            "market_cap": q.get("market_cap"),
            "pe_ratio": q.get("pe_ratio"),
            "forward_pe": q.get("forward_pe"),
            "ps_ratio": q.get("ps_ratio"),
            "dividend_yield": q.get("dividend_yield"),
        },
        "stats": {
            "volatility": q.get("volatility"),
            "sharpe_ratio_1y": q.get("sharpe_ratio_1y"),
            "return_1y": q.get("return_1y"),
            "max_drawdown": q.get("max_drawdown"),
        },
        "holdings": holders,
    }
    if args["include_history"]:
        output["history_count"] = len(history)
        output["history_range"] = (
            {"from": history[0].get("date"), "to": history[-1].get("date")} if history else None
        )
    if args["include_earnings"]:
        output["earnings"] = earnings

    lines = _header(output["symbol"], q)
    lines += ["", "## Valuation"]
    _bullet(lines, "Market Cap", q.get("market_cap"), format_market_cap)
    _bullet(lines, "P/E", q.get("pe_ratio"), format_number)
    _bullet(lines, "Forward P/E", q.get("forward_pe"), format_number)
    _bullet(lines, "P/S", q.get("ps_ratio"), format_number)
    lines += ["", "## Statistics"]
    _bullet(lines, "Volatility", q.get("volatility"), _pct)
    _bullet(lines, "Sharpe (1Y)", q.get("sharpe_ratio_1y"), format_number)
    _bullet(lines, "Return (1Y)", q.get("return_1y"), _pct, skip_zero=False)
    _bullet(lines, "Max Drawdown", q.get("max_drawdown"), _pct, skip_zero=False)

    if args["include_history"] and history:
        lines += [
            "",
            f"## Price History ({len(history)} days)",
            f"From {history[0].get('date')} to {history[-1].get('date')}",
        ]

    if args["include_earnings"] and earnings:
        lines += ["", "## Recent Earnings"]
        for e in earnings[:RECENT_EARNINGS]:
            parts = []
            if as_number(e.get("eps_estimate")) is not None:
                parts.append(f"Est: {format_money(e['eps_estimate'])}")
            if as_number(e.get("eps_actual")) is not None:
                parts.append(f"Actual: {format_money(e['eps_actual'])}")
            lines.append(f"- {e.get('fiscal_date_ending')}: {' '.join(parts) or 'No data'}")

    if holders:
        lines += ["", "## Held By Portfolios"]
        for h in holders:
            lines.append(f"- {h.get('name')}: {format_percent(h.get('allocation'))}")

    return ToolResult.from_structured(output, args["response_format"], "\n".join(lines))


async def get_stock_stats(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    symbol = args["symbol"]
    q = get_quote(await ctx.api.fetch_stock_details(symbol))
    if q is None:
        return stock_not_found(symbol)

    output = {
        "symbol": _symbol(q, symbol),
        "name": q.get("name"),
        "volatility": q.get("volatility"),
        "sharpe_ratio_1y": q.get("sharpe_ratio_1y"),
        "return_1y": q.get("return_1y"),
        "return_ytd": q.get("return_ytd"),
        "max_drawdown": q.get("max_drawdown"),
        "updated_at": q.get("updated_at"),
    }

    lines = [f"# {output['symbol']} Statistics", "", "## Risk Metrics"]
    _bullet(lines, "Volatility", q.get("volatility"), _pct, skip_zero=False)
    _bullet(lines, "Max Drawdown", q.get("max_drawdown"), _pct, skip_zero=False)
    lines += ["", "## Risk-Adjusted Returns"]
    _bullet(lines, "Sharpe Ratio (1Y)", q.get("sharpe_ratio_1y"), format_number, skip_zero=False)
    lines += ["", "## Returns"]
    _bullet(lines, "1 Year", q.get("return_1y"), _pct, skip_zero=False)
    _bullet(lines, "YTD", q.get("return_ytd"), _pct, skip_zero=False)

    return ToolResult.from_structured(output, args["response_format"], "\n".join(lines))


def _pct(value: Any) -> str:
    return format_percent(value, 2)


def _symbol(quote: dict[str, Any], requested: str) -> str:
    return str(quote.get("symbol") or requested).upper()


def _header(symbol: str, q: dict[str, Any]) -> list[str]:
    lines = [f"# {symbol} - {q.get('name') or 'Unknown'}", "", f"**Price**: {format_money(q.get('price'))}"]
    if as_number(q.get("change_percent")) is not None:
        lines.append(f"**Today**: {format_percent(q['change_percent'], 2, signed=True)}")
    return lines


def _bullet(lines: list[str], label: str, value: Any, render: Any, *, skip_zero: bool = True) -> None:
    number = as_number(value)
    if number is None or (skip_zero and not number):
        return
    lines.append(f"- **{label}**: {render(value)}")


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------

STOCK_TOOLS = (
    Tool(
        name="earnings_get_stock_quote",
        title="Get Stock Quote",
        description="""Get current stock quote and basic price information.

Returns:
- Current price and daily change
- Market cap
- P/E ratio (trailing and forward)
- P/S ratio
- Dividend yield
- 52-week high and change from high
- Trading volume

Args:
  - symbol (string): Stock ticker symbol (e.g., AAPL, MSFT, GOOGL)
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "What's the price of AAPL?" -> earnings_get_stock_quote with symbol="AAPL"
  - "Show me MSFT's P/E ratio" -> earnings_get_stock_quote with symbol='MSFT'""",
        schema=ToolSchema(params={"symbol": symbol_field(), "response_format": response_format_field()}),
        handler=get_stock_quote,
    ),
    Tool(
        name="earnings_get_stock_details",
        title="Get Stock Details",
        description="""Get comprehensive stock details including quote, price history, earnings, and portfolio holdings.

Returns:
- Quote: price, valuation metrics, market cap
- Price history: number of daily closes and the date range covered (optional)
- Earnings: estimates and actuals for recent quarters (optional)
- Holdings: which portfolios hold this stock and at what allocation

Args:
  - symbol (string): Stock ticker symbol (e.g., AAPL, MSFT, GOOGL)
  - include_history (boolean): Include price history summary (default: true)
  - include_earnings (boolean): Include earnings estimates (default: true)
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "Tell me everything about AAPL" -> earnings_get_stock_details with symbol="AAPL"
  - "Show GOOGL with earnings data" -> earnings_get_stock_details with symbol='GOOGL'""",
        schema=ToolSchema(
            params={
                "symbol": symbol_field(),
                "include_history": BooleanField(default=True, description="Include price history summary"),
                "include_earnings": BooleanField(default=True, description="Include earnings estimates"),
                "response_format": response_format_field(),
            }
        ),
        handler=get_stock_details,
    ),
    Tool(
        name="earnings_get_stock_stats",
        title="Get Stock Stats",
        description="""Get statistical metrics for a stock.

Returns risk and return metrics:
- Volatility (annualized)
- Sharpe ratio (1 year)
- Return (1 year) and return (YTD)
- Max drawdown

Args:
  - symbol (string): Stock ticker symbol (e.g., AAPL, MSFT, GOOGL)
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "What's AAPL's Sharpe ratio?" -> earnings_get_stock_stats with symbol="AAPL"
  - "Show me TSLA's volatility" -> earnings_get_stock_stats with symbol='TSLA'""",
        schema=ToolSchema(params={"symbol": symbol_field(), "response_format": response_format_field()}),
        handler=get_stock_stats,
    ),
)
