"""Tests for the sensitivity and project report payloads."""

from datetime import datetime
from decimal import Decimal

from devtracker.calculations import (
    CommissionSchedule,
    CostInputs,
    PhaseRecord,
    UnitRecord,
    normalize_unit_costs,
    run_scenarios,
    scenarios_from_prices,
)
from devtracker.reports import project_report, sensitivity_report

INPUTS = CostInputs.from_mapping(
    {
        "hard_costs": "100",
        "hard_costs_method": "perSqFt",
        "soft_costs": "20000",
        "land_costs": "10000",
        "lawyer_fees": "5000",
    }
)
WHEN = datetime(2024, 3, 1, 9, 30)


def build_sensitivity(prices):
    schedule = CommissionSchedule()
    results = run_scenarios(INPUTS, 1000, scenarios_from_prices(prices), schedule)
    return sensitivity_report(results, INPUTS, "Type K", 1000, schedule, app_name="DevTracker Pro", generated_at=WHEN)


def test_sensitivity_executive_summary_uses_first_scenario():
    report = build_sensitivity([300000, 140000, 350000])
    base = report["executive_summary"]["base_case"]

    assert report["title"] == "Type K - Sensitivity Analysis"
    assert report["generated_at"] == "2024-03-01 09:30"
    assert base["label"] == "Base Case"
    assert base["sales_price"] == "$300,000"
    assert base["total_costs"] == "$146,000"
    assert base["net_profit"] == "$154,000"
    assert base["margin"] == "51.3%"
    assert base["roi"] == "105.5%"
    assert base["profit_per_sqft"] == "$154"
    assert base["margin_band"] == "healthy"


def test_sensitivity_tables_are_ordered_by_price():
    report = build_sensitivity([300000, 140000, 350000])

    assert [row["sales_price"] for row in report["scenario_rows"]] == ["$140,000", "$300,000", "$350,000"]
    assert report["cost_columns"] == ["Scenario 1", "Base Case", "Scenario 2"]
    assert report["cost_rows"][-1]["line"] == "Total Costs"
    assert len(report["cost_rows"]) == 8


def test_sensitivity_risk_analysis():
    risk = build_sensitivity([300000, 140000, 350000])["executive_summary"]["risk_analysis"]

    assert risk["break_even_price"] == "$141,237"
    assert risk["price_range"] == "$140,000 - $350,000"
    assert risk["unprofitable_scenarios"] == ["Scenario 1"]


def test_sensitivity_cost_breakdown_shares():
    breakdown = build_sensitivity([300000])["executive_summary"]["cost_breakdown"]
    hard = next(row for row in breakdown if row["line"] == "Hard Costs")

    assert hard["amount"] == "$100,000"
    assert hard["share"] == "68.5%"


def test_sensitivity_without_results_has_no_summary():
    report = build_sensitivity([0, -5])

    assert report["executive_summary"] is None
    assert report["scenario_rows"] == []


def test_project_report_cards_and_rows():
    unit = UnitRecord(
        quantity=2,
        sales_price=Decimal("300000"),
        costs=normalize_unit_costs(INPUTS, 1000, Decimal("300000")),
    )
    phases = [
        PhaseRecord(status="completed", units=[unit], name="Phase 1"),
        PhaseRecord(status="in_progress", units=[], name="Phase 2"),
    ]
    report = project_report("Townhomes", phases, planned_phases=12, generated_at=WHEN)
    cards = {card["label"]: card["value"] for card in report["summary_cards"]}

    assert cards["Phases Completed"] == "1 / 12"
    assert cards["Total Revenue"] == "$600,000"
    assert cards["Total Costs"] == "$292,000"
    assert cards["Overall Margin"] == "51.3%"
    assert report["phase_rows"][1]["status"] == "In Progress"
    assert report["phase_rows"][0]["margin_band"] == "healthy"
