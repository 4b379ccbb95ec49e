"""Tests for price-scenario sensitivity analysis and break-even pricing."""

from decimal import Decimal

from devtracker.calculations import (
    DEFAULT_SCENARIO_LABELS,
    CommissionSchedule,
    CostInputs,
    Scenario,
    break_even_price,
    calculate_tiered_commission,
    price_sensitivity,
    run_scenarios,
    scenarios_from_prices,
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


def test_non_positive_prices_never_appear():
    scenarios = [
        Scenario.of("Base Case", 300000),
        Scenario.of("Zero", 0),
        Scenario.of("Negative", -1),
        Scenario.of("Blank", ""),
        Scenario.of("High", 350000),
    ]
    results = run_scenarios(make_inputs(), 1000, scenarios)

    assert [r.label for r in results] == ["Base Case", "High"]


def test_input_order_is_preserved_and_count_is_not_fixed():
    prices = [320000, 280000, 300000, 310000, 290000]
    results = run_scenarios(make_inputs(), 1000, scenarios_from_prices(prices))

    assert [r.sales_price for r in results] == [Decimal(p) for p in prices]
    assert results[0].label == "Base Case"
    assert results[4].label == "Scenario 4"


def test_identical_runs_give_identical_results():
    scenarios = scenarios_from_prices([300000, 280000, 350000])

    first = run_scenarios(make_inputs(), 1000, scenarios)
    second = run_scenarios(make_inputs(), 1000, scenarios)

    assert first == second


def test_run_leaves_inputs_and_scenarios_unchanged():
    inputs = make_inputs(contingency_costs="5", contingency_costs_method="percentage")
    scenarios = scenarios_from_prices([300000, 0, 150000])
    inputs_before = inputs.to_dict()
    scenarios_before = list(scenarios)

    run_scenarios(inputs, 1000, scenarios)

    assert inputs.to_dict() == inputs_before
    assert scenarios == scenarios_before


def test_auto_sales_costs_follow_each_scenario_price():
    results = run_scenarios(make_inputs(), 1000, scenarios_from_prices([300000, 150000]))

    assert results[0].sales_costs == Decimal("11000")
    assert results[1].sales_costs == Decimal("6500")
    assert results[0].result.total_costs == Decimal("146000")


def test_manual_sales_costs_are_the_same_for_every_scenario():
    results = run_scenarios(make_inputs(sales_costs="9000"), 1000, scenarios_from_prices([300000, 150000]))
    assert {r.sales_costs for r in results} == {Decimal("9000")}


def test_percentage_lines_use_scenario_price():
    inputs = make_inputs(contingency_costs="5", contingency_costs_method="percentage")
    results = run_scenarios(inputs, 1000, scenarios_from_prices([200000, 400000]))

    assert results[0].costs.contingency_costs == Decimal("10000")
    assert results[1].costs.contingency_costs == Decimal("20000")


def test_default_labels():
    labels = [s.label for s in scenarios_from_prices([1, 2, 3, 4])]
    assert labels == list(DEFAULT_SCENARIO_LABELS)


def test_price_sensitivity_orders_by_price_only():
    results = run_scenarios(make_inputs(), 1000, scenarios_from_prices([320000, 280000, 300000]))
    ordered = price_sensitivity(results)

    assert [r.sales_price for r in ordered] == [Decimal("280000"), Decimal("300000"), Decimal("320000")]
    assert [r.label for r in results] == ["Base Case", "Scenario 1", "Scenario 2"]


def test_scenario_to_dict_carries_metrics():
    result = run_scenarios(make_inputs(), 1000, scenarios_from_prices([300000]))[0]
    data = result.to_dict()

    assert data["label"] == "Base Case"
    assert data["net_profit"] == Decimal("154000")
    assert data["costs"]["sales_costs"] == Decimal("11000")


# ---------------------------------------------------------------------------
# Break-even
# ---------------------------------------------------------------------------

def test_break_even_above_tier1_threshold():
    price = break_even_price(make_inputs(), 1000)

    # 135000 of other costs, commission solved in tier 2
    commission = calculate_tiered_commission(price)
    assert abs(price - (Decimal("135000") + commission)) < Decimal("0.0001")
    assert price > Decimal("100000")


def test_break_even_within_tier1():
    inputs = CostInputs.from_mapping({"hard_costs": "47500"})
    assert break_even_price(inputs, 1000) == Decimal("50000")


def test_break_even_with_manual_sales_costs_is_total_cost():
    assert break_even_price(make_inputs(sales_costs="9000"), 1000) == Decimal("144000")


def test_break_even_unavailable_with_percentage_lines():
    inputs = make_inputs(land_costs="5", land_costs_method="percentage")
    assert break_even_price(inputs, 1000) is None


def test_break_even_respects_schedule():
    schedule = CommissionSchedule(tier1_rate=Decimal("0.10"), tier1_threshold=Decimal("1000000"))
    inputs = CostInputs.from_mapping({"hard_costs": "90000"})
    assert break_even_price(inputs, 1000, schedule) == Decimal("100000")
