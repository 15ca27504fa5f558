"""Portfolio tools: list portfolios, holdings and scoring breakdown."""

from __future__ import annotations

from typing import Any

from earnings_mcp.formatting import NA, as_number, format_money, format_number, format_percent
from earnings_mcp.protocol.models import ToolResult
from earnings_mcp.tools.registry import Tool, ToolContext
from earnings_mcp.tools.schema import NumberField, ToolSchema, group_id_field, response_format_field

TOP_STOCKS = 5


async def list_portfolios(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    portfolios = await ctx.api.fetch_portfolios() or []
    offset, limit = args["offset"], args["limit"]
    page = portfolios[offset : offset + limit]
    total = len(portfolios)
    has_more = offset + len(page) < total

    output = {
        "total": total,
        "count": len(page),
        "offset": offset,
        "has_more": has_more,
        "next_offset": offset + len(page) if has_more else None,
        "portfolios": [
            {
                "id": p.get("id"),
                "name": p.get("name"),
                "type": p.get("type"),
                "member_count": p.get("member_count"),
                "cagr": p.get("cagr"),
                "sharpe": p.get("sharpe"),
                "sortino": p.get("sortino"),
                "max_drawdown": p.get("max_drawdown"),
                "score": p.get("last_score"),
                "updated_at": p.get("stats_updated_at"),
            }
            for p in page
        ],
    }
    if not total:
        return ToolResult.from_structured(output, args["response_format"], "No portfolios found.")
    if not page:
        return ToolResult.from_structured(
            output, args["response_format"], f"No portfolios at offset {offset} (total: {total})."
        )

    lines = [f"# Portfolios ({total})", ""]
    if has_more or offset:
        lines += [f"*Showing {offset + 1}-{offset + len(page)} of {total}*", ""]
    for p in page:
        lines.append(f"## {p.get('name')} (ID: {p.get('id')})")
        lines.append(f"- **Holdings**: {p.get('member_count') if p.get('member_count') is not None else NA} stocks")
        if p.get("type"):
            lines.append(f"- **Type**: {p['type']}")
        _bullet(lines, "CAGR", p.get("cagr"), lambda v: format_percent(v, 2))
        _bullet(lines, "Sharpe", p.get("sharpe"), format_number)
        _bullet(lines, "Sortino", p.get("sortino"), format_number)
        _bullet(lines, "Max Drawdown", p.get("max_drawdown"), lambda v: format_percent(v, 2))
        _bullet(lines, "Score", p.get("last_score"), lambda v: format_number(v, 1))
        lines.append("")
    if has_more:
        lines.append(f"More portfolios available: use offset={output['next_offset']}.")

    return ToolResult.from_structured(output, args["response_format"], "\n".join(lines).rstrip())


async def get_portfolio_holdings(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    group_id = args["group_id"]
    data = await ctx.api.fetch_dashboard_data(group_id)
    holdings = [h for h in data.get("data") or [] if isinstance(h, dict)]
    output = {
        "group_id": group_id,
        "last_updated": data.get("lastUpdated"),
        "count": len(holdings),
        "holdings": [
            {
                "symbol": h.get("symbol"),
                "name": h.get("name"),
                "allocation": h.get("allocation"),
                "price": h.get("price"),
                "forward_peg": h.get("forward_peg"),
                "change_1d": h.get("change_1d"),
                "change_ytd": h.get("change_ytd"),
            }
            for h in holdings
        ],
    }
    if not holdings:
        markdown = f"No holdings found for portfolio {group_id}."
        return ToolResult.from_structured(output, args["response_format"], markdown)

    lines = [f"# Portfolio {group_id} Holdings ({len(holdings)} stocks)", ""]
    if data.get("lastUpdated"):
        lines += [f"*Last updated: {data['lastUpdated']}*", ""]
    lines.append("| Symbol | Name | Allocation | Price | Fwd PEG | 1D Change | YTD |")
    lines.append("|--------|------|------------|-------|---------|-----------|-----|")
    for h in holdings:
        lines.append(
            f"| {h.get('symbol')} | {h.get('name') or ''} | {format_percent(h.get('allocation'))} "
            f"| {format_money(h.get('price'))} | {format_number(h.get('forward_peg'))} "
            f"| {format_percent(h.get('change_1d'), 2, signed=True)} "
            f"| {format_percent(h.get('change_ytd'), 2, signed=True)} |"
        )

    return ToolResult.from_structured(output, args["response_format"], "\n".join(lines))


async def get_portfolio_score(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    group_id = args["group_id"]
    score = await ctx.api.fetch_portfolio_score(group_id)

    stock_details = [s for s in score.get("stock_details") or [] if isinstance(s, dict)]
    top_stocks = sorted(stock_details, key=lambda s: as_number(s.get("score")) or 0.0, reverse=True)[:TOP_STOCKS]
    components = score.get("components") if isinstance(score.get("components"), dict) else None

    output = {
        "group_id": score.get("group_id", group_id),
        "total_score": score.get("total_score"),
        "holdings_score": score.get("holdings_score"),
        "performance_score": score.get("performance_score"),
        "components": components,
        "stock_count": len(stock_details),
        "top_stocks": [
            {"symbol": s.get("symbol"), "weight": s.get("weight"), "score": s.get("score")} for s in top_stocks
        ],
    }

    lines = [
        f"# Portfolio {group_id} Score",
        "",
        f"**Total Score**: {format_number(score.get('total_score'), 1)} / 100",
        "",
        "## Score Components",
        f"- **Holdings Quality**: {format_number(score.get('holdings_score'), 1)}",
        f"- **Performance**: {format_number(score.get('performance_score'), 1)}",
        "",
    ]
    if components:
        lines.append("## Breakdown")
        for key in ("quality", "valuation", "momentum", "diversification"):
            lines.append(f"- {key.capitalize()}: {format_number(components.get(key), 1)}")
        lines.append("")
    if top_stocks:
        lines.append(f"## Top {TOP_STOCKS} Stocks by Score")
        for s in top_stocks:
            lines.append(
                f"- **{s.get('symbol')}**: Score {format_number(s.get('score'), 1)}, "
                f"Weight {format_percent(s.get('weight'))}"
            )

    return ToolResult.from_structured(output, args["response_format"], "\n".join(lines).rstrip())


def _bullet(lines: list[str], label: str, value: Any, render: Any) -> None:
    if as_number(value) is not None:
        lines.append(f"- **{label}**: {render(value)}")


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------

PORTFOLIO_TOOLS = (
    Tool(
        name="earnings_list_portfolios",
        title="List Portfolios",
        description="""List all portfolios in the earnings-worker system with their stats.

Returns portfolio information including:
- Portfolio ID, name, type
- Member count (number of holdings)
- Performance metrics: CAGR, Sharpe ratio, Sortino ratio, max drawdown
- Overall score

Args:
  - limit (number): Maximum portfolios to return, 1-100 (default: 20)
  - offset (number): Number of portfolios to skip (default: 0)
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Returns:
  List of portfolios with stats. Use portfolio IDs with other tools to get details.

Examples:
  - "Show me all portfolios" -> earnings_list_portfolios
  - "List portfolios with their Sharpe ratios" -> earnings_list_portfolios""",
        schema=ToolSchema(
            params={
                "limit": NumberField(
                    integer=True,
                    minimum=1,
                    maximum=100,
                    default=20,
                    description="Maximum number of portfolios to return",
                ),
                "offset": NumberField(
                    integer=True,
                    minimum=0,
                    default=0,
                    description="Number of portfolios to skip for pagination",
                ),
                "response_format": response_format_field(),
            }
        ),
        handler=list_portfolios,
    ),
    Tool(
        name="earnings_get_portfolio_holdings",
        title="Get Portfolio Holdings",
        description="""Get the holdings of a specific portfolio with allocations and current prices.

Returns detailed holding information:
- Stock symbol and name
- Allocation percentage
- Current price and daily change
- Forward PEG ratio
- YTD return

Args:
  - group_id (number): Portfolio/group ID (get from earnings_list_portfolios)
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "Show holdings for portfolio 1" -> earnings_get_portfolio_holdings with group_id=1
  - "What stocks are in Warren Buffett's portfolio?" -> First list portfolios, then get holdings""",
        schema=ToolSchema(
            params={
                "group_id": group_id_field("Portfolio/group ID (get from earnings_list_portfolios)"),
                "response_format": response_format_field(),
            }
        ),
        handler=get_portfolio_holdings,
    ),
    Tool(
        name="earnings_get_portfolio_score",
        title="Get Portfolio Score",
        description="""Get detailed scoring breakdown for a portfolio.

Returns comprehensive scoring information:
- Total score (0-100)
- Holdings quality score and performance score
- Component scores: quality, valuation, momentum, diversification
- Top 5 stocks by score within the portfolio

Args:
  - group_id (number): Portfolio/group ID (get from earnings_list_portfolios)
  - response_format ('markdown' | 'json'): Output format (default: 'markdown')

Examples:
  - "What's the score for portfolio 1?" -> earnings_get_portfolio_score with group_id=1
  - "Show me the quality breakdown" -> earnings_get_portfolio_score with response_format=json""",
        schema=ToolSchema(
            params={
                "group_id": group_id_field("Portfolio/group ID (get from earnings_list_portfolios)"),
                "response_format": response_format_field(),
            }
        ),
        handler=get_portfolio_score,
    ),
)
