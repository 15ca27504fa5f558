"""Number and text formatting shared by the tool handlers.

Percent heuristic
-----------------
The data provider mixes units: some fields arrive as proportions (``0.12``)
and some as already-scaled percentages (``12.0``), with no unit annotation.
:func:`format_percent` treats ``abs(value) > 1.5`` as already a percentage and
scales everything else by 100. Mixed data near the threshold is rendered
wrongly: an already-scaled ``1.2`` (meaning 1.2%) becomes ``120.0%`` and a
proportion of ``1.8`` becomes ``1.8%``. This is a known limitation of the
heuristic, kept until the provider annotates units.

Structured output always carries raw values; formatting happens once, at
render time.
"""

from __future__ import annotations

import math
from typing import Any

CHARACTER_LIMIT = 25000
PERCENT_THRESHOLD = 1.5
NA = "N/A"


def as_number(value: Any) -> float | None:
    """Return *value* as a float, or ``None`` for non-numeric or non-finite input."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def normalize_percent(value: Any) -> float | None:
    """Apply the percent heuristic, returning a percentage number."""
    number = as_number(value)
    if number is None:
        return None
    return number if abs(number) > PERCENT_THRESHOLD else number * 100


def format_percent(value: Any, digits: int = 1, *, signed: bool = False) -> str:
    """Render a proportion-or-percentage as ``"12.3%"``.

    Strings are returned unchanged, so formatting an already formatted value
    is a no-op.
    """
    if isinstance(value, str):
        return value
    pct = normalize_percent(value)
    if pct is None:
        return NA
    sign = "+" if signed and pct >= 0 else ""
    return f"{sign}{pct:.{digits}f}%"


def format_number(value: Any, digits: int = 2) -> str:
    number = as_number(value)
    if number is None:
        return NA
    return f"{number:.{digits}f}"


def format_money(value: Any, digits: int = 2) -> str:
    number = as_number(value)
    if number is None:
        return NA
    return f"${number:,.{digits}f}"


def format_market_cap(value: Any) -> str:
    """Render a market cap in billions, ``"$2.50B"``."""
    number = as_number(value)
    if not number:
        return NA
    return f"${number / 1e9:.2f}B"


def truncate_text(text: str, limit: int = CHARACTER_LIMIT) -> str:
    """Cap a response at *limit* characters with a visible notice."""
    if len(text) <= limit:
        return text
    notice = f"\n\n[Response truncated from {len(text)} to {limit} characters. Use response_format='json' or narrower arguments for less output.]"
    return text[: max(limit - len(notice), 0)] + notice
