"""Display formatting shared by the API payloads and the printable reports."""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any

from .costs import ENGINE_CONTEXT, safe_quantize, to_decimal

_WHOLE = Decimal("1")
_ONE_DECIMAL = Decimal("0.1")


def format_currency(value: Any) -> str:
    """$#,### with no decimals, e.g. -$1,235 for -1234.5."""
    amount = safe_quantize(to_decimal(value), _WHOLE)
    sign = "-" if amount < 0 else ""
    with localcontext(ENGINE_CONTEXT):
        return f"{sign}${abs(amount):,.0f}"


def format_percent(value: Any) -> str:
    """##.#%, e.g. 51.3%."""
    pct = safe_quantize(to_decimal(value), _ONE_DECIMAL)
    with localcontext(ENGINE_CONTEXT):
        return f"{pct:.1f}%"


def margin_band(margin: Any) -> str:
    """Colour band for a margin percent: low (< 5), medium (< 15), healthy."""
    pct = to_decimal(margin)
    if pct < 5:
        return "low"
    if pct < 15:
        return "medium"
    return "healthy"
