"""
Utility functions shared across the API blueprints:
- parse_decimal / parse_optional_int / parse_required_int: lenient request parsing.
- json_body: request JSON as a dict.
- parse_status: phase status validation.
- commission_schedule: the configured CommissionSchedule.
- money / metrics_payload / costs_payload: JSON payloads rounded to cents.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from flask import abort, current_app, request

from .calculations import (
    CommissionSchedule,
    NormalizedCosts,
    ProfitabilityResult,
    format_currency,
    format_percent,
    margin_band,
    safe_quantize,
)
from .models import PHASE_STATUSES

_CENT = Decimal("0.01")


def json_body() -> Dict[str, Any]:
    """Return the request JSON object, or 400 if the body is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object.")
    return data


def parse_decimal(value: Any, *, field: str, required: bool = False) -> Optional[Decimal]:
    """
    Parse money-like input (number or string) to Decimal.

    - "" / None -> None (or 400 when required)
    - "1,234.50" -> Decimal("1234.50")
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            abort(400, description=f"'{field}' is required.")
        return None
    if isinstance(value, bool):
        abort(400, description=f"'{field}' must be a number.")
    try:
        result = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        abort(400, description=f"'{field}' must be a number.")
    if not result.is_finite():
        abort(400, description=f"'{field}' must be a number.")
    return result


def parse_optional_int(value: Any, *, field: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        abort(400, description=f"'{field}' must be an integer.")
    try:
        return int(str(value).strip())
    except ValueError:
        abort(400, description=f"'{field}' must be an integer.")


def parse_required_int(value: Any, *, field: str) -> int:
    result = parse_optional_int(value, field=field)
    if result is None:
        abort(400, description=f"'{field}' is required.")
    return result


def parse_required_str(value: Any, *, field: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        abort(400, description=f"'{field}' is required.")
    return text


def parse_status(value: Any) -> str:
    status = value.strip() if isinstance(value, str) and value.strip() else "planned"
    if status not in PHASE_STATUSES:
        abort(400, description=f"'status' must be one of: {', '.join(PHASE_STATUSES)}.")
    return status


def money(value: Decimal) -> Decimal:
    return safe_quantize(value, _CENT)


def commission_schedule() -> CommissionSchedule:
    """Commission schedule of the running app (built from COMMISSION_* config)."""
    return current_app.extensions["devtracker.commission"]


def metrics_payload(result: ProfitabilityResult) -> Dict[str, Any]:
    """ProfitabilityResult rounded to cents, with display strings and margin band."""
    data: Dict[str, Any] = {key: money(value) for key, value in result.to_dict().items()}
    data["formatted"] = {
        "total_costs": format_currency(result.total_costs),
        "net_profit": format_currency(result.net_profit),
        "margin": format_percent(result.margin),
        "roi": format_percent(result.roi),
        "profit_per_sqft": format_currency(result.profit_per_sqft),
    }
    data["margin_band"] = margin_band(result.margin)
    return data


def costs_payload(costs: NormalizedCosts) -> Dict[str, Any]:
    data: Dict[str, Any] = {key: money(value) for key, value in costs.to_dict().items()}
    data["total"] = money(costs.total)
    return data
