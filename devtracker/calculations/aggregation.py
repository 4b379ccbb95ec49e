"""
devtracker/calculations/aggregation.py

Project-level rollups over phases and their units.

IMPORTANT:
- Unit costs arrive already normalized (normalization happens when a phase unit
  is saved). Nothing is re-normalized here.
- Percentages are rounded to one decimal place here, at the aggregation
  boundary. Money totals are returned unrounded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Any, Dict, Iterable, List

from .costs import ENGINE_CONTEXT, HUNDRED, ZERO, NormalizedCosts, finite, safe_quantize, to_decimal

COMPLETED_STATUS = "completed"
ONE_DECIMAL = Decimal("0.1")


def round_percent(value: Decimal) -> Decimal:
    return safe_quantize(value, ONE_DECIMAL)


@dataclass(frozen=True)
class UnitRecord:
    quantity: int
    sales_price: Decimal
    costs: NormalizedCosts


@dataclass(frozen=True)
class PhaseRecord:
    status: str
    units: List[UnitRecord] = field(default_factory=list)
    name: str = ""


@dataclass(frozen=True)
class ProjectSummary:
    total_phases: int
    completed_phases: int
    total_units: int
    total_costs: Decimal
    total_revenue: Decimal
    net_profit: Decimal
    overall_margin: Decimal
    overall_roi: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_phases": self.total_phases,
            "completed_phases": self.completed_phases,
            "total_units": self.total_units,
            "total_costs": self.total_costs,
            "total_revenue": self.total_revenue,
            "net_profit": self.net_profit,
            "overall_margin": self.overall_margin,
            "overall_roi": self.overall_roi,
        }


@dataclass(frozen=True)
class PhaseSummary:
    name: str
    status: str
    total_units: int
    total_costs: Decimal
    total_revenue: Decimal
    net_profit: Decimal
    margin: Decimal
    roi: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "total_units": self.total_units,
            "total_costs": self.total_costs,
            "total_revenue": self.total_revenue,
            "net_profit": self.net_profit,
            "margin": self.margin,
            "roi": self.roi,
        }


def _rollup(units: Iterable[UnitRecord]):
    total_units = 0
    total_costs = ZERO
    total_revenue = ZERO
    with localcontext(ENGINE_CONTEXT):
        for unit in units:
            quantity = int(unit.quantity or 0)
            total_units += quantity
            total_costs += unit.costs.total * quantity
            total_revenue += to_decimal(unit.sales_price) * quantity
    return total_units, finite(total_costs), finite(total_revenue)


def _net_margin_roi(total_costs: Decimal, total_revenue: Decimal):
    with localcontext(ENGINE_CONTEXT):
        net = finite(total_revenue - total_costs)
        margin = finite(net / total_revenue * HUNDRED) if total_revenue > ZERO else ZERO
        roi = finite(net / total_costs * HUNDRED) if total_costs > ZERO else ZERO
    return net, round_percent(margin), round_percent(roi)


def summarize_phase(phase: PhaseRecord) -> PhaseSummary:
    total_units, total_costs, total_revenue = _rollup(phase.units)
    net_profit, margin, roi = _net_margin_roi(total_costs, total_revenue)
    return PhaseSummary(
        name=phase.name,
        status=phase.status,
        total_units=total_units,
        total_costs=total_costs,
        total_revenue=total_revenue,
        net_profit=net_profit,
        margin=margin,
        roi=roi,
    )


def summarize(phases: Iterable[PhaseRecord]) -> ProjectSummary:
    phases = list(phases)
    total_units, total_costs, total_revenue = _rollup(
        unit for phase in phases for unit in phase.units
    )
    net_profit, overall_margin, overall_roi = _net_margin_roi(total_costs, total_revenue)

    return ProjectSummary(
        total_phases=len(phases),
        completed_phases=sum(1 for p in phases if p.status == COMPLETED_STATUS),
        total_units=total_units,
        total_costs=total_costs,
        total_revenue=total_revenue,
        net_profit=net_profit,
        overall_margin=overall_margin,
        overall_roi=overall_roi,
    )
