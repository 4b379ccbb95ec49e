"""
devtracker/calculations/scenarios.py

What-if analysis: one cost basis evaluated at several sales prices.

Rules:
- Scenarios without a positive price are skipped and do not appear in the output.
- Percentage cost lines are taken against each scenario's own price, so the same
  contingency percent yields different dollars at different price points.
- Sales costs are resolved per scenario (manual override or tiered commission on
  that scenario's price).
- Output keeps input order. Sorting by price is a presentation concern
  (see price_sensitivity()).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, localcontext
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .commission import DEFAULT_SCHEDULE, CommissionSchedule, resolve_sales_costs
from .costs import (
    COST_FIELDS,
    ENGINE_CONTEXT,
    ZERO,
    CostInputs,
    InputMethod,
    NormalizedCosts,
    UnitContext,
    normalize_costs,
    to_decimal,
)
from .profitability import ProfitabilityResult, evaluate

DEFAULT_SCENARIO_LABELS = ("Base Case", "Scenario 1", "Scenario 2", "Scenario 3")


@dataclass(frozen=True)
class Scenario:
    label: str
    sales_price: Decimal

    @classmethod
    def of(cls, label: str, raw_price: Any) -> "Scenario":
        return cls(label=label, sales_price=to_decimal(raw_price))


@dataclass(frozen=True)
class ScenarioResult:
    label: str
    sales_price: Decimal
    costs: NormalizedCosts
    result: ProfitabilityResult

    @property
    def sales_costs(self) -> Decimal:
        return self.costs.sales_costs

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "label": self.label,
            "sales_price": self.sales_price,
            "sales_costs": self.sales_costs,
        }
        data.update(self.result.to_dict())
        data["costs"] = self.costs.to_dict()
        return data


def scenarios_from_prices(
    prices: Sequence[Any],
    labels: Sequence[str] = DEFAULT_SCENARIO_LABELS,
) -> List[Scenario]:
    """Pair raw prices with labels; extra prices get "Scenario N" labels."""
    scenarios = []
    for index, raw_price in enumerate(prices):
        label = labels[index] if index < len(labels) else f"Scenario {index}"
        scenarios.append(Scenario.of(label, raw_price))
    return scenarios


def evaluate_scenario(
    cost_inputs: CostInputs,
    square_footage: Any,
    scenario: Scenario,
    schedule: CommissionSchedule = DEFAULT_SCHEDULE,
) -> ScenarioResult:
    ctx = UnitContext(square_footage=to_decimal(square_footage), base_price=scenario.sales_price)

    normalized = normalize_costs(cost_inputs, ctx)
    sales_costs = resolve_sales_costs(cost_inputs.sales_costs, ctx, scenario.sales_price, schedule)
    normalized = replace(normalized, sales_costs=sales_costs)

    return ScenarioResult(
        label=scenario.label,
        sales_price=scenario.sales_price,
        costs=normalized,
        result=evaluate(normalized, scenario.sales_price, ctx.square_footage),
    )


def run_scenarios(
    cost_inputs: CostInputs,
    square_footage: Any,
    scenarios: Iterable[Scenario],
    schedule: CommissionSchedule = DEFAULT_SCHEDULE,
) -> List[ScenarioResult]:
    return [
        evaluate_scenario(cost_inputs, square_footage, scenario, schedule)
        for scenario in scenarios
        if scenario.sales_price > ZERO
    ]


def price_sensitivity(results: Iterable[ScenarioResult]) -> List[ScenarioResult]:
    """Results ordered by ascending sales price (stable for equal prices)."""
    return sorted(results, key=lambda r: r.sales_price)


def break_even_price(
    cost_inputs: CostInputs,
    square_footage: Any,
    schedule: CommissionSchedule = DEFAULT_SCHEDULE,
) -> Optional[Decimal]:
    """
    Lowest sales price at which net profit is zero, for the report's risk section.

    Only solvable in closed form when no cost line is a percentage of the price
    and sales costs are either a manual override or the tiered commission.
    Returns None otherwise.
    """
    if any(getattr(cost_inputs, name).method is InputMethod.PERCENTAGE for name in COST_FIELDS):
        return None

    ctx = UnitContext(square_footage=to_decimal(square_footage), base_price=ZERO)
    fixed = normalize_costs(cost_inputs, ctx)

    if not cost_inputs.sales_costs.is_zero():
        return fixed.total

    # price = other_costs + commission(price), solved per tier
    one = Decimal("1")
    with localcontext(ENGINE_CONTEXT):
        other = fixed.total - fixed.sales_costs
        tier1_price = other / (one - schedule.tier1_rate) if schedule.tier1_rate < one else None
        if tier1_price is not None and tier1_price <= schedule.tier1_threshold:
            return _finite_or_none(tier1_price)

        if schedule.tier2_rate >= one:
            return None
        tier1_commission = schedule.tier1_threshold * schedule.tier1_rate
        return _finite_or_none(
            (other + tier1_commission - schedule.tier1_threshold * schedule.tier2_rate) / (one - schedule.tier2_rate)
        )


def _finite_or_none(value: Decimal) -> Optional[Decimal]:
    return value if value.is_finite() else None
