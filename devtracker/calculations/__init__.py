"""
Cost-normalization and profitability engine.

Pure functions over Decimal values, shared by the phase tracker, the what-if
calculator and the report exporters.
"""

from __future__ import annotations

from .aggregation import PhaseRecord, PhaseSummary, ProjectSummary, UnitRecord, summarize, summarize_phase
from .commission import CommissionSchedule, calculate_tiered_commission, resolve_sales_costs
from .costs import (
    COST_FIELDS,
    ENGINE_CONTEXT,
    CostEntry,
    CostInputs,
    InputMethod,
    NormalizedCosts,
    UnitContext,
    finite,
    normalize,
    normalize_costs,
    safe_quantize,
    to_decimal,
)
from .formatting import format_currency, format_percent, margin_band
from .profitability import ProfitabilityResult, UnitEvaluation, evaluate, evaluate_unit, normalize_unit_costs
from .scenarios import (
    DEFAULT_SCENARIO_LABELS,
    Scenario,
    ScenarioResult,
    break_even_price,
    price_sensitivity,
    run_scenarios,
    scenarios_from_prices,
)

__all__ = [
    "COST_FIELDS",
    "DEFAULT_SCENARIO_LABELS",
    "ENGINE_CONTEXT",
    "CommissionSchedule",
    "CostEntry",
    "CostInputs",
    "InputMethod",
    "NormalizedCosts",
    "PhaseRecord",
    "PhaseSummary",
    "ProfitabilityResult",
    "ProjectSummary",
    "Scenario",
    "ScenarioResult",
    "UnitContext",
    "UnitEvaluation",
    "UnitRecord",
    "break_even_price",
    "calculate_tiered_commission",
    "evaluate",
    "evaluate_unit",
    "finite",
    "format_currency",
    "format_percent",
    "margin_band",
    "normalize",
    "normalize_costs",
    "normalize_unit_costs",
    "price_sensitivity",
    "resolve_sales_costs",
    "run_scenarios",
    "safe_quantize",
    "scenarios_from_prices",
    "summarize",
    "summarize_phase",
    "to_decimal",
]
