"""
devtracker/blueprints/calculator/routes.py

What-if calculator (JSON API).

Scope:
- Saved calculator scenario per calculator unit type (get / upsert)
- Sensitivity analysis across the scenario prices
- Sensitivity report payload (?format=html renders the printable page)

Scenario prices:
- Sent as `scenario_prices` (list) or `scenario1_price` .. `scenario4_price`,
  labelled Base Case, Scenario 1, Scenario 2, Scenario 3.
- Prices <= 0 (or blank, or unparsable) are dropped from the analysis.

NOTE:
- analyze/report with only `calculator_unit_type_id` (no cost or price keys)
  run on the saved scenario of that unit type.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from flask import Blueprint, abort, current_app, jsonify, render_template, request

from ...audit import log_action, serialize_model
from ...calculations import (
    COST_FIELDS,
    CostInputs,
    break_even_price,
    format_currency,
    run_scenarios,
    scenarios_from_prices,
    to_decimal,
)
from ...extensions import db
from ...models import CalculatorScenario, CalculatorUnitType
from ...reports import sensitivity_report
from ...utils import (
    commission_schedule,
    costs_payload,
    json_body,
    metrics_payload,
    money,
    parse_decimal,
    parse_required_int,
)

logger = logging.getLogger(__name__)

calculator_bp = Blueprint("calculator", __name__, url_prefix="/api")

PRICE_KEYS = ("scenario1_price", "scenario2_price", "scenario3_price", "scenario4_price")


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _parse_prices(data: Dict[str, Any]) -> List[Optional[Decimal]]:
    if isinstance(data.get("scenario_prices"), list):
        raw = data["scenario_prices"]
    else:
        raw = [data.get(key) for key in PRICE_KEYS]
    return [None if value is None or str(value).strip() == "" else to_decimal(value) for value in raw]


def _has_inputs(data: Dict[str, Any]) -> bool:
    keys = set(COST_FIELDS) | {f"{name}_method" for name in COST_FIELDS} | set(PRICE_KEYS)
    return "scenario_prices" in data or any(key in data for key in keys)


def _analysis_inputs(data: Dict[str, Any]) -> Tuple[str, Any, CostInputs, List[Optional[Decimal]]]:
    """Resolve (unit name, square footage, cost inputs, prices) for analyze/report."""
    unit_name = (data.get("unit_name") or "").strip() or "Custom Unit"
    saved = None

    if data.get("calculator_unit_type_id") not in (None, ""):
        unit_type = CalculatorUnitType.query.get_or_404(
            parse_required_int(data.get("calculator_unit_type_id"), field="calculator_unit_type_id")
        )
        unit_name = unit_type.name
        square_footage = unit_type.square_footage
        saved = unit_type.scenario
    else:
        square_footage = parse_decimal(data.get("square_footage"), field="square_footage", required=True)

    if saved is not None and not _has_inputs(data):
        return unit_name, square_footage, saved.cost_inputs(), saved.prices()

    return unit_name, square_footage, CostInputs.from_mapping(data), _parse_prices(data)


# ----------------------------------------------------------------------
# Saved scenarios
# ----------------------------------------------------------------------
@calculator_bp.get("/calculator/<int:calculator_unit_type_id>")
def get_scenario(calculator_unit_type_id: int):
    unit_type = CalculatorUnitType.query.get_or_404(calculator_unit_type_id)
    return jsonify(
        {
            "calculator_unit_type": unit_type.to_dict(),
            "scenario": unit_type.scenario.to_dict() if unit_type.scenario else None,
        }
    )


@calculator_bp.post("/calculator")
def save_scenario():
    """Create or replace the saved scenario of a calculator unit type."""
    data = json_body()
    unit_type = CalculatorUnitType.query.get_or_404(
        parse_required_int(data.get("calculator_unit_type_id"), field="calculator_unit_type_id")
    )

    scenario = unit_type.scenario
    created = scenario is None
    if created:
        scenario = CalculatorScenario(calculator_unit_type=unit_type)
        db.session.add(scenario)
        before = None
    else:
        before = serialize_model(scenario)

    scenario.apply_cost_inputs(CostInputs.from_mapping(data))
    prices = _parse_prices(data) + [None] * len(PRICE_KEYS)
    for key, price in zip(PRICE_KEYS, prices):
        setattr(scenario, key, price)

    db.session.flush()
    log_action(scenario, "CREATE" if created else "UPDATE", before=before, after=serialize_model(scenario))
    db.session.commit()
    return jsonify(scenario.to_dict()), 201 if created else 200


# ----------------------------------------------------------------------
# Analysis
# ----------------------------------------------------------------------
@calculator_bp.post("/calculator/analyze")
def analyze():
    data = json_body()
    unit_name, square_footage, cost_inputs, prices = _analysis_inputs(data)
    schedule = commission_schedule()

    results = run_scenarios(cost_inputs, square_footage, scenarios_from_prices(prices), schedule)
    break_even = break_even_price(cost_inputs, square_footage, schedule)

    return jsonify(
        {
            "unit_name": unit_name,
            "square_footage": square_footage,
            "commission": schedule.describe(),
            "break_even_price": money(break_even) if break_even is not None else None,
            "break_even_price_formatted": format_currency(break_even) if break_even is not None else None,
            "results": [
                {
                    "label": r.label,
                    "sales_price": money(r.sales_price),
                    "sales_costs": money(r.sales_costs),
                    "costs": costs_payload(r.costs),
                    "metrics": metrics_payload(r.result),
                }
                for r in results
            ],
        }
    )


@calculator_bp.post("/calculator/report")
def report():
    """Sensitivity report payload; ?format=html renders the printable page."""
    data = json_body()
    unit_name, square_footage, cost_inputs, prices = _analysis_inputs(data)
    schedule = commission_schedule()

    results = run_scenarios(cost_inputs, square_footage, scenarios_from_prices(prices), schedule)
    if not results:
        abort(400, description="At least one scenario needs a sales price greater than zero.")

    payload = sensitivity_report(
        results,
        cost_inputs,
        unit_name,
        square_footage,
        schedule,
        app_name=current_app.config.get("APP_NAME", ""),
    )
    logger.info("Sensitivity report for %s (%d scenarios)", unit_name, len(results))

    if request.args.get("format") == "html":
        return render_template("reports/sensitivity.html", report=payload)
    return jsonify(payload)
