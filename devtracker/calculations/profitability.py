"""
devtracker/calculations/profitability.py

Profitability metrics for one unit (or one price scenario).

All division-by-zero and overflow cases degrade to 0 so that callers never
display NaN or Infinity. Results are NOT rounded here; rounding happens at presentation or
aggregation boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, localcontext
from typing import Any, Dict, Optional

from .commission import DEFAULT_SCHEDULE, CommissionSchedule, resolve_sales_costs
from .costs import (
    ENGINE_CONTEXT,
    HUNDRED,
    ZERO,
    CostInputs,
    NormalizedCosts,
    UnitContext,
    normalize,
    finite,
    normalize_costs,
    to_decimal,
)


@dataclass(frozen=True)
class ProfitabilityResult:
    total_costs: Decimal
    net_profit: Decimal
    margin: Decimal
    roi: Decimal
    profit_per_sqft: Decimal

    def to_dict(self) -> Dict[str, Decimal]:
        return {
            "total_costs": self.total_costs,
            "net_profit": self.net_profit,
            "margin": self.margin,
            "roi": self.roi,
            "profit_per_sqft": self.profit_per_sqft,
        }


@dataclass(frozen=True)
class UnitEvaluation:
    """Normalized cost basis of a unit together with its metrics."""

    sales_price: Decimal
    costs: NormalizedCosts
    result: ProfitabilityResult


def evaluate(normalized: NormalizedCosts, sales_price: Any, square_footage: Any) -> ProfitabilityResult:
    price = to_decimal(sales_price)
    sqft = to_decimal(square_footage)

    total_costs = normalized.total
    with localcontext(ENGINE_CONTEXT):
        net_profit = finite(price - total_costs)
        margin = finite(net_profit / price * HUNDRED) if price > ZERO else ZERO
        roi = finite(net_profit / total_costs * HUNDRED) if total_costs > ZERO else ZERO
        profit_per_sqft = finite(net_profit / sqft) if sqft > ZERO else ZERO

    return ProfitabilityResult(
        total_costs=total_costs,
        net_profit=net_profit,
        margin=margin,
        roi=roi,
        profit_per_sqft=profit_per_sqft,
    )


def normalize_unit_costs(
    inputs: CostInputs,
    square_footage: Any,
    sales_price: Any,
    schedule: CommissionSchedule = DEFAULT_SCHEDULE,
    contingency_base: Optional[Any] = None,
) -> NormalizedCosts:
    """
    Normalize the cost lines of a unit as the phase editor does.

    - Percentage lines other than contingency are taken against the sales price.
    - Sales costs follow the override/auto-commission rule.
    - Contingency in percent is taken against `contingency_base` when given,
      otherwise against the subtotal of all other normalized lines.
    """
    price = to_decimal(sales_price)
    ctx = UnitContext(square_footage=to_decimal(square_footage), base_price=price)

    partial = normalize_costs(inputs, ctx)
    partial = replace(
        partial,
        sales_costs=resolve_sales_costs(inputs.sales_costs, ctx, price, schedule),
        contingency_costs=ZERO,
    )

    base = to_decimal(contingency_base) if contingency_base is not None else partial.total
    contingency = normalize(inputs.contingency_costs, replace(ctx, base_price=base))
    return replace(partial, contingency_costs=contingency)


def evaluate_unit(
    inputs: CostInputs,
    square_footage: Any,
    sales_price: Any,
    schedule: CommissionSchedule = DEFAULT_SCHEDULE,
    contingency_base: Optional[Any] = None,
) -> UnitEvaluation:
    """Normalize raw inputs for one unit and evaluate them at its sales price."""
    price = to_decimal(sales_price)
    costs = normalize_unit_costs(
        inputs,
        square_footage,
        price,
        schedule=schedule,
        contingency_base=contingency_base,
    )
    return UnitEvaluation(
        sales_price=price,
        costs=costs,
        result=evaluate(costs, price, square_footage),
    )
