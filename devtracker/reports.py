"""
devtracker/reports.py

Export payloads for the printable reports.

- sensitivity_report(): what-if calculator results (executive summary,
  scenario table, detailed cost table).
- project_report(): project summary cards plus one row per phase.

Every value a reader sees is pre-formatted here (format_currency /
format_percent) so the HTML templates and any other exporter render the
same strings.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, localcontext
from typing import Any, Dict, List, Optional, Sequence

from .calculations import (
    COST_FIELDS,
    ENGINE_CONTEXT,
    CommissionSchedule,
    CostInputs,
    PhaseRecord,
    ScenarioResult,
    break_even_price,
    finite,
    format_currency,
    format_percent,
    margin_band,
    price_sensitivity,
    summarize,
    summarize_phase,
)

COST_LABELS = {
    "hard_costs": "Hard Costs",
    "soft_costs": "Soft Costs",
    "land_costs": "Land Costs",
    "contingency_costs": "Contingency",
    "sales_costs": "Sales Costs",
    "lawyer_fees": "Lawyer Fees",
    "construction_financing": "Construction Financing",
}


def _metrics(result: ScenarioResult) -> Dict[str, Any]:
    r = result.result
    return {
        "label": result.label,
        "sales_price": format_currency(result.sales_price),
        "sales_costs": format_currency(result.sales_costs),
        "total_costs": format_currency(r.total_costs),
        "net_profit": format_currency(r.net_profit),
        "margin": format_percent(r.margin),
        "roi": format_percent(r.roi),
        "profit_per_sqft": format_currency(r.profit_per_sqft),
        "margin_band": margin_band(r.margin),
    }


def _cost_breakdown(result: ScenarioResult) -> List[Dict[str, Any]]:
    total = result.result.total_costs
    rows = []
    for name in COST_FIELDS:
        amount = getattr(result.costs, name)
        with localcontext(ENGINE_CONTEXT):
            share = finite(amount / total * 100) if total > 0 else Decimal("0")
        rows.append(
            {
                "line": COST_LABELS[name],
                "amount": format_currency(amount),
                "share": format_percent(share),
            }
        )
    return rows


def _risk_analysis(
    results: Sequence[ScenarioResult],
    cost_inputs: CostInputs,
    square_footage: Any,
    schedule: CommissionSchedule,
) -> Dict[str, Any]:
    prices = [r.sales_price for r in results]
    margins = [r.result.margin for r in results]
    break_even = break_even_price(cost_inputs, square_footage, schedule)
    unprofitable = [r.label for r in results if r.result.net_profit < 0]

    return {
        "break_even_price": format_currency(break_even) if break_even is not None else None,
        "price_range": f"{format_currency(min(prices))} - {format_currency(max(prices))}",
        "margin_spread": f"{format_percent(min(margins))} - {format_percent(max(margins))}",
        "unprofitable_scenarios": unprofitable,
    }


def sensitivity_report(
    results: Sequence[ScenarioResult],
    cost_inputs: CostInputs,
    unit_name: str,
    square_footage: Any,
    schedule: CommissionSchedule,
    app_name: str = "",
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the sensitivity analysis report.

    The first result (input order) is the base case; the scenario and cost
    tables are ordered by sales price.
    """
    generated_at = generated_at or datetime.utcnow()
    ordered = price_sensitivity(results)

    report: Dict[str, Any] = {
        "title": f"{unit_name} - Sensitivity Analysis",
        "app_name": app_name,
        "generated_at": generated_at.strftime("%Y-%m-%d %H:%M"),
        "unit_name": unit_name,
        "square_footage": square_footage,
        "commission": schedule.describe(),
        "scenario_rows": [_metrics(r) for r in ordered],
        "cost_columns": [r.label for r in ordered],
        "cost_rows": [
            {
                "line": COST_LABELS[name],
                "amounts": [format_currency(getattr(r.costs, name)) for r in ordered],
            }
            for name in COST_FIELDS
        ],
        "executive_summary": None,
    }

    if results:
        base = results[0]
        report["cost_rows"].append(
            {"line": "Total Costs", "amounts": [format_currency(r.result.total_costs) for r in ordered]}
        )
        report["executive_summary"] = {
            "base_case": _metrics(base),
            "cost_breakdown": _cost_breakdown(base),
            "risk_analysis": _risk_analysis(results, cost_inputs, square_footage, schedule),
        }

    return report


def project_report(
    project_name: str,
    phases: Sequence[PhaseRecord],
    description: str = "",
    planned_phases: Optional[int] = None,
    app_name: str = "",
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Summary cards and per-phase table for one project.

    `planned_phases` is the number of phases the project is planned to have;
    defaults to the number of phases recorded so far.
    """
    generated_at = generated_at or datetime.utcnow()
    summary = summarize(phases)

    phase_rows = []
    for phase in phases:
        ps = summarize_phase(phase)
        phase_rows.append(
            {
                "name": ps.name,
                "status": ps.status.replace("_", " ").title(),
                "total_units": ps.total_units,
                "total_costs": format_currency(ps.total_costs),
                "total_revenue": format_currency(ps.total_revenue),
                "net_profit": format_currency(ps.net_profit),
                "margin": format_percent(ps.margin),
                "roi": format_percent(ps.roi),
                "margin_band": margin_band(ps.margin),
            }
        )

    return {
        "title": f"{project_name} - Project Report",
        "app_name": app_name,
        "generated_at": generated_at.strftime("%Y-%m-%d %H:%M"),
        "project_name": project_name,
        "description": description or "",
        "summary": summary.to_dict(),
        "summary_cards": [
            {
                "label": "Phases Completed",
                "value": f"{summary.completed_phases} / {planned_phases or summary.total_phases}",
            },
            {"label": "Total Units", "value": str(summary.total_units)},
            {"label": "Total Revenue", "value": format_currency(summary.total_revenue)},
            {"label": "Total Costs", "value": format_currency(summary.total_costs)},
            {"label": "Net Profit", "value": format_currency(summary.net_profit)},
            {"label": "Overall Margin", "value": format_percent(summary.overall_margin)},
            {"label": "Overall ROI", "value": format_percent(summary.overall_roi)},
        ],
        "margin_band": margin_band(summary.overall_margin),
        "phase_rows": phase_rows,
    }
