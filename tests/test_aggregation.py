"""Tests for project and phase rollups."""

from decimal import Decimal

from devtracker.calculations import (
    CostInputs,
    PhaseRecord,
    UnitRecord,
    normalize_unit_costs,
    summarize,
    summarize_phase,
)


def reference_unit(quantity=2, price="300000"):
    inputs = CostInputs.from_mapping(
        {
            "hard_costs": "100",
            "hard_costs_method": "perSqFt",
            "soft_costs": "20000",
            "land_costs": "10000",
            "lawyer_fees": "5000",
        }
    )
    return UnitRecord(
        quantity=quantity,
        sales_price=Decimal(price),
        costs=normalize_unit_costs(inputs, 1000, Decimal(price)),
    )


def test_completed_phase_plus_empty_planned_phase():
    phases = [
        PhaseRecord(status="completed", units=[reference_unit(quantity=2)], name="Phase 1"),
        PhaseRecord(status="planned", units=[], name="Phase 2"),
    ]
    s = summarize(phases)

    assert s.total_phases == 2
    assert s.total_units == 2
    assert s.completed_phases == 1
    assert s.total_revenue == Decimal("600000")
    assert s.total_costs == Decimal("292000")
    assert s.net_profit == Decimal("308000")
    assert s.overall_margin == Decimal("51.3")
    assert s.overall_roi == Decimal("105.5")


def test_empty_project_has_zero_margin_and_roi():
    s = summarize([])

    assert s.total_units == 0
    assert s.overall_margin == 0
    assert s.overall_roi == 0


def test_zero_quantity_units_contribute_nothing():
    s = summarize([PhaseRecord(status="planned", units=[reference_unit(quantity=0)])])

    assert s.total_costs == 0
    assert s.total_revenue == 0


def test_only_completed_status_counts():
    phases = [PhaseRecord(status=status, units=[]) for status in ("completed", "in_progress", "future", "completed")]
    assert summarize(phases).completed_phases == 2


def test_phase_summary_matches_project_arithmetic():
    phase = PhaseRecord(status="in_progress", units=[reference_unit(1), reference_unit(3, "250000")], name="P")
    ps = summarize_phase(phase)

    assert ps.name == "P"
    assert ps.total_units == 4
    assert ps.total_revenue == Decimal("1050000")
    assert ps.to_dict()["status"] == "in_progress"


def test_summary_to_dict_keys():
    data = summarize([]).to_dict()
    assert list(data) == [
        "total_phases",
        "completed_phases",
        "total_units",
        "total_costs",
        "total_revenue",
        "net_profit",
        "overall_margin",
        "overall_roi",
    ]
