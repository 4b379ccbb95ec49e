"""Tests for profit, margin and ROI evaluation."""

from decimal import Decimal

import pytest

from devtracker.calculations import (
    CommissionSchedule,
    CostInputs,
    NormalizedCosts,
    evaluate,
    evaluate_unit,
    normalize_unit_costs,
)


def make_inputs(**overrides):
    data = {
        "hard_costs": "100",
        "hard_costs_method": "perSqFt",
        "soft_costs": "20000",
        "land_costs": "10000",
        "lawyer_fees": "5000",
    }
    data.update(overrides)
    return CostInputs.from_mapping(data)


# ---------------------------------------------------------------------------
# evaluate
# ---------------------------------------------------------------------------

def test_non_positive_price_gives_zero_margin_and_roi_from_costs():
    costs = NormalizedCosts(hard_costs=Decimal("50000"))
    r = evaluate(costs, 0, 1000)

    assert r.margin == 0
    assert r.net_profit == Decimal("-50000")
    assert r.roi == Decimal("-100")


def test_zero_costs_gives_zero_roi_and_full_profit():
    r = evaluate(NormalizedCosts(), 250000, 1000)

    assert r.roi == 0
    assert r.net_profit == Decimal("250000")
    assert r.margin == Decimal("100")


def test_zero_square_footage_gives_zero_profit_per_sqft():
    r = evaluate(NormalizedCosts(hard_costs=Decimal("1000")), 2000, 0)
    assert r.profit_per_sqft == 0


def test_negative_profit_is_not_clamped():
    r = evaluate(NormalizedCosts(hard_costs=Decimal("400000")), 300000, 1000)

    assert r.net_profit == Decimal("-100000")
    assert r.margin < 0


def test_overflowing_margin_is_zero():
    result = evaluate(NormalizedCosts(hard_costs=Decimal("1e999999")), Decimal("1e-999999"), 1)

    assert result.margin == Decimal("0")
    assert result.roi == Decimal("-100")
    assert result.net_profit < 0


# ---------------------------------------------------------------------------
# Reference unit, end to end
# ---------------------------------------------------------------------------

def test_reference_unit_end_to_end():
    ev = evaluate_unit(make_inputs(), 1000, 300000)

    assert ev.costs.sales_costs == Decimal("11000")
    assert ev.result.total_costs == Decimal("146000")
    assert ev.result.net_profit == Decimal("154000")
    assert round(ev.result.margin, 1) == Decimal("51.3")
    assert round(ev.result.roi, 1) == Decimal("105.5")
    assert ev.result.profit_per_sqft == Decimal("154")


def test_identical_inputs_give_identical_results():
    first = evaluate_unit(make_inputs(), 1000, 300000)
    second = evaluate_unit(make_inputs(), 1000, 300000)
    assert first == second


def test_manual_sales_cost_overrides_commission():
    ev = evaluate_unit(make_inputs(sales_costs="9000"), 1000, 300000)

    assert ev.costs.sales_costs == Decimal("9000")
    assert ev.result.total_costs == Decimal("144000")


def test_custom_commission_schedule_is_used():
    schedule = CommissionSchedule(tier1_rate=Decimal("0.06"))
    ev = evaluate_unit(make_inputs(), 1000, 300000, schedule=schedule)
    assert ev.costs.sales_costs == Decimal("12000")


# ---------------------------------------------------------------------------
# Contingency base
# ---------------------------------------------------------------------------

def test_percentage_contingency_defaults_to_subtotal_of_other_lines():
    inputs = make_inputs(contingency_costs="10", contingency_costs_method="percentage")
    costs = normalize_unit_costs(inputs, 1000, 300000)

    # 100000 + 20000 + 10000 + 11000 + 5000
    assert costs.contingency_costs == Decimal("14600")


def test_percentage_contingency_with_explicit_base():
    inputs = make_inputs(contingency_costs="5", contingency_costs_method="percentage")
    costs = normalize_unit_costs(inputs, 1000, 300000, contingency_base=100000)
    assert costs.contingency_costs == Decimal("5000")


@pytest.mark.parametrize("method", ["perUnit", "perSqFt"])
def test_non_percentage_contingency_ignores_base(method):
    inputs = make_inputs(contingency_costs="3", contingency_costs_method=method)
    costs = normalize_unit_costs(inputs, 1000, 300000)
    assert costs.contingency_costs == (Decimal("3") if method == "perUnit" else Decimal("3000"))


def test_percentage_lines_use_sales_price():
    inputs = make_inputs(land_costs="5", land_costs_method="percentage")
    costs = normalize_unit_costs(inputs, 1000, 300000)
    assert costs.land_costs == Decimal("15000")
