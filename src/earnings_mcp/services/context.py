"""Bounded prompt contexts for the AI tools.

Raw upstream payloads are never sent to the model. Each builder picks the
fields worth reasoning about, caps list lengths, and the final text is cut
to ``max_chars`` by :func:`bound_context`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from earnings_mcp.formatting import NA, as_number, format_market_cap, format_money, format_number, format_percent

MAX_HOLDINGS = 10
MAX_HOLDERS = 5

_RS_RANK_PATTERN = re.compile(r'data-score="(\d+)"')
_TRUNCATION_MARK = "\n[context truncated]"


def bound_context(text: str, max_chars: int) -> str:
    """Cut *text* to at most *max_chars* characters."""
    if len(text) <= max_chars:
        return text
    return text[: max(max_chars - len(_TRUNCATION_MARK), 0)] + _TRUNCATION_MARK


def build_portfolio_context(
    portfolio: Mapping[str, Any],
    holdings: Sequence[Mapping[str, Any]],
    max_chars: int,
) -> str:
    lines = [
        f"Portfolio: {portfolio.get('name')}",
        f"Holdings: {portfolio.get('member_count') or len(holdings)} stocks",
        "",
    ]
    _append_if(lines, "CAGR", portfolio.get("cagr"), lambda v: format_percent(v, 2))
    _append_if(lines, "Sharpe Ratio", portfolio.get("sharpe"), format_number)
    _append_if(lines, "Sortino Ratio", portfolio.get("sortino"), format_number)
    _append_if(lines, "Max Drawdown", portfolio.get("max_drawdown"), lambda v: format_percent(v, 2))
    _append_if(lines, "Score", portfolio.get("last_score"), lambda v: format_number(v, 1))

    lines += ["", "Top Holdings:"]
    for h in holdings[:MAX_HOLDINGS]:
        change = h.get("change_1d")
        change_text = f" {format_percent(change, 2, signed=True)}" if as_number(change) is not None else ""
        lines.append(f"- {h.get('symbol')}: {format_percent(h.get('allocation'))}{change_text}")

    return bound_context("\n".join(lines), max_chars)


def build_stock_context(details: Mapping[str, Any], max_chars: int) -> str:
    q = details.get("quote") or {}
    lines = [
        f"Stock: {q.get('symbol')} - {q.get('name') or 'Unknown'}",
        f"Price: {format_money(q.get('price'))}",
        "",
    ]
    _append_if(lines, "Market Cap", q.get("market_cap"), format_market_cap, truthy=True)
    _append_if(lines, "P/E Ratio", q.get("pe_ratio"), format_number, truthy=True)
    _append_if(lines, "Forward P/E", q.get("forward_pe"), format_number, truthy=True)
    _append_if(lines, "P/S Ratio", q.get("ps_ratio"), format_number, truthy=True)
    _append_if(lines, "Dividend Yield", q.get("dividend_yield"), lambda v: format_percent(v, 2), truthy=True)
    _append_if(lines, "Today", q.get("change_percent"), lambda v: format_percent(v, 2, signed=True))
    _append_if(lines, "Volatility", q.get("volatility"), lambda v: format_percent(v, 2), truthy=True)
    _append_if(lines, "Sharpe (1Y)", q.get("sharpe_ratio_1y"), format_number, truthy=True)
    _append_if(lines, "Return (1Y)", q.get("return_1y"), lambda v: format_percent(v, 2))

    holders = details.get("holdings") or []
    if holders:
        lines += ["", "Held by portfolios:"]
        for h in holders[:MAX_HOLDERS]:
            lines.append(f"- {h.get('name')}: {format_percent(h.get('allocation'))}")

    return bound_context("\n".join(lines), max_chars)


def build_comparison_context(
    portfolio_a: Mapping[str, Any],
    portfolio_b: Mapping[str, Any],
    max_chars: int,
) -> str:
    sections = []
    for label, p in (("A", portfolio_a), ("B", portfolio_b)):
        sections.append(
            "\n".join(
                [
                    f"Portfolio {label}: {p.get('name')} (ID: {p.get('id')})",
                    f"- CAGR: {format_percent(p.get('cagr'))}",
                    f"- Sharpe: {format_number(p.get('sharpe'))}",
                    f"- Sortino: {format_number(p.get('sortino'))}",
                    f"- Max Drawdown: {format_percent(p.get('max_drawdown'))}",
                    f"- Holdings: {p.get('member_count') if p.get('member_count') is not None else NA}",
                    f"- Score: {format_number(p.get('last_score'), 1)}",
                ]
            )
        )
    return bound_context("\n\n".join(sections), max_chars)


def build_sentiment_context(portfolios: Sequence[Mapping[str, Any]], top_n: int, max_chars: int) -> str:
    lines = [f"Top {top_n} Performing Portfolios:"]
    for p in portfolios:
        lines.append(
            f"- {p.get('name')}: Score {format_number(p.get('last_score'), 1)}, "
            f"Return {format_percent(p.get('cagr'))}, Sharpe {format_number(p.get('sharpe'))}"
        )
    return bound_context("\n".join(lines), max_chars)


# ---------------------------------------------------------------------------
# Comprehensive analysis: valuation and technical indicators
# ---------------------------------------------------------------------------


def extract_rs_rank(markup: Any) -> int | None:
    """Read the 1-month relative-strength rank from its badge markup."""
    if not isinstance(markup, str):
        return None
    match = _RS_RANK_PATTERN.search(markup)
    return int(match.group(1)) if match else None


def estimate_peg(quote: Mapping[str, Any]) -> float | None:
    """Use the reported PEG, or estimate it from forward P/E and EPS growth.

    Growth is ``(eps_next_year - eps_current_year) / eps_current_year * 100``
    and only a positive growth yields an estimate.
    """
    reported = as_number(quote.get("peg_ratio"))
    if reported:
        return reported
    forward_pe = as_number(quote.get("forward_pe"))
    eps_next = as_number(quote.get("eps_next_year"))
    eps_current = as_number(quote.get("eps_current_year"))
    if not (forward_pe and eps_next and eps_current):
        return None
    growth = (eps_next - eps_current) / eps_current * 100
    if growth <= 0:
        return None
    return forward_pe / growth


def sma_position(price: Any, sma: Any) -> str | None:
    """``"above"`` or ``"below"`` the moving average, ``None`` when unknown."""
    price_n, sma_n = as_number(price), as_number(sma)
    if price_n is None or sma_n is None:
        return None
    return "above" if price_n > sma_n else "below"


def technical_snapshot(quote: Mapping[str, Any]) -> dict[str, Any]:
    """Raw valuation and trend indicators used by the comprehensive analysis."""
    price = quote.get("price")
    return {
        "price": price,
        "pe_ratio": quote.get("pe_ratio"),
        "forward_pe": quote.get("forward_pe"),
        "ps_ratio": quote.get("ps_ratio"),
        "peg_ratio": estimate_peg(quote),
        "rs_rank_1m": extract_rs_rank(quote.get("rs_rank_1m")),
        "sma": {
            period: {"value": quote.get(f"sma_{period}"), "position": sma_position(price, quote.get(f"sma_{period}"))}
            for period in ("20", "50", "200")
        },
        "change_percent": quote.get("change_percent"),
        "change_ytd": quote.get("change_ytd"),
        "change_1y": quote.get("change_1y"),
        "delta_52w_high": quote.get("delta_52w_high"),
    }


def build_comprehensive_context(symbol: str, quote: Mapping[str, Any], max_chars: int) -> str:
    snap = technical_snapshot(quote)
    rs_rank = snap["rs_rank_1m"]
    peg = snap["peg_ratio"]
    distance = snap["delta_52w_high"]
    distance = f"{format_number(distance, 1)}%" if as_number(distance) is not None else NA

    lines = [
        f"Stock: {symbol} ({quote.get('name') or 'Unknown'})",
        f"Price: {format_money(snap['price'])}",
        "",
        "Valuation:",
        f"- P/E (Trailing): {format_number(snap['pe_ratio'], 1)}",
        f"- Forward P/E: {format_number(snap['forward_pe'], 1)}",
        f"- Price/Sales: {format_number(snap['ps_ratio'], 1)}",
        f"- PEG Ratio: {format_number(peg)}",
        "",
        "Technicals:",
    ]
    for period, sma in snap["sma"].items():
        position = sma["position"]
        trend = {"above": "ABOVE (Bullish)", "below": "BELOW (Bearish)"}.get(position or "", NA)
        lines.append(f"- SMA {period}: {format_money(sma['value'])}, price is {trend}")
    lines += [
        f"- RS Rank (1M): {rs_rank if rs_rank is not None else NA} (0-99 scale, higher is better)",
        "",
        "Returns:",
        f"- Daily Change: {format_percent(snap['change_percent'])}",
        f"- YTD: {format_percent(snap['change_ytd'])}",
        f"- 1 Year: {format_percent(snap['change_1y'])}",
        f"- Distance from 52W High: {distance}",
    ]
    return bound_context("\n".join(lines), max_chars)


def _append_if(
    lines: list[str],
    label: str,
    value: Any,
    render: Any,
    *,
    truthy: bool = False,
) -> None:
    number = as_number(value)
    if number is None or (truthy and not number):
        return
    lines.append(f"{label}: {render(value)}")
