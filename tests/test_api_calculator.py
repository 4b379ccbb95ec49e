"""Flask test-client tests for unit type catalogues and the what-if calculator."""

from decimal import Decimal

from devtracker.models import CalculatorScenario, UnitType
from devtracker.seed import seed_defaults


# ---------------------------------------------------------------------------
# Unit types
# ---------------------------------------------------------------------------

def test_unit_type_crud(client):
    resp = client.post("/api/unit-types", json={"name": "Type D", "square_footage": "1800", "bedrooms": 4})
    assert resp.status_code == 201
    created = resp.get_json()
    assert created["lock_off_flex_rooms"] == 0

    resp = client.put(f"/api/unit-types/{created['id']}", json={"description": "Corner unit"})
    assert resp.get_json()["description"] == "Corner unit"
    assert resp.get_json()["square_footage"] == 1800

    assert client.delete(f"/api/unit-types/{created['id']}").status_code == 204
    assert UnitType.query.count() == 0


def test_unit_type_requires_positive_square_footage(client):
    resp = client.post("/api/unit-types", json={"name": "Bad", "square_footage": 0})
    assert resp.status_code == 400


def test_unit_type_in_use_cannot_be_deleted(client, unit_type, reference_costs):
    project = client.post("/api/projects", json={"name": "P"}).get_json()
    phase = client.post("/api/phases", json={"project_id": project["id"], "name": "Phase 1"}).get_json()
    payload = dict(reference_costs, phase_id=phase["id"], unit_type_id=unit_type.id, quantity=1)
    client.post("/api/phase-units", json=payload)

    resp = client.delete(f"/api/unit-types/{unit_type.id}")
    assert resp.status_code == 409
    assert "phase unit" in resp.get_json()["error"]


def test_calculator_unit_type_with_scenario_cannot_be_deleted(client, calculator_unit_type):
    client.post("/api/calculator", json={"calculator_unit_type_id": calculator_unit_type.id})

    resp = client.delete(f"/api/calculator-unit-types/{calculator_unit_type.id}")
    assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Saved scenarios
# ---------------------------------------------------------------------------

def test_scenario_upsert(client, calculator_unit_type, reference_costs):
    url = f"/api/calculator/{calculator_unit_type.id}"
    assert client.get(url).get_json()["scenario"] is None

    payload = dict(reference_costs, calculator_unit_type_id=calculator_unit_type.id, scenario1_price="300000")
    assert client.post("/api/calculator", json=payload).status_code == 201

    payload["scenario2_price"] = "320000"
    assert client.post("/api/calculator", json=payload).status_code == 200
    assert CalculatorScenario.query.count() == 1

    saved = client.get(url).get_json()["scenario"]
    assert Decimal(saved["scenario2_price"]) == Decimal("320000")
    assert saved["scenario3_price"] is None


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

def test_analyze_reference_unit(client, reference_costs):
    payload = dict(reference_costs, square_footage=1000, scenario_prices=["300000", "0", "150000"])
    data = client.post("/api/calculator/analyze", json=payload).get_json()

    assert [r["label"] for r in data["results"]] == ["Base Case", "Scenario 2"]
    base = data["results"][0]
    assert Decimal(base["sales_costs"]) == Decimal("11000")
    assert Decimal(base["metrics"]["total_costs"]) == Decimal("146000")
    assert base["metrics"]["formatted"]["roi"] == "105.5%"
    assert Decimal(data["results"][1]["sales_costs"]) == Decimal("6500")
    assert data["break_even_price_formatted"] == "$141,237"


def test_analyze_uses_saved_scenario(client, calculator_unit_type, reference_costs):
    payload = dict(reference_costs, calculator_unit_type_id=calculator_unit_type.id, scenario1_price="300000")
    client.post("/api/calculator", json=payload)

    data = client.post(
        "/api/calculator/analyze", json={"calculator_unit_type_id": calculator_unit_type.id}
    ).get_json()

    assert data["unit_name"] == "Studio Apartment"
    assert len(data["results"]) == 1
    assert Decimal(data["results"][0]["costs"]["hard_costs"]) == Decimal("75000")


def test_unparsable_scenario_price_is_dropped(client, reference_costs):
    payload = dict(reference_costs, square_footage=1000, scenario_prices=["300000", "abc"])
    resp = client.post("/api/calculator/analyze", json=payload)

    assert resp.status_code == 200
    assert [r["label"] for r in resp.get_json()["results"]] == ["Base Case"]


def test_analyze_with_huge_cost_does_not_fail(client, reference_costs):
    payload = dict(
        reference_costs,
        hard_costs="1e30",
        hard_costs_method="perUnit",
        square_footage=1000,
        scenario_prices=["300000"],
    )
    resp = client.post("/api/calculator/analyze", json=payload)

    assert resp.status_code == 200
    assert resp.get_json()["results"][0]["metrics"]["formatted"]["roi"] == "-100.0%"


def test_analyze_requires_square_footage_without_unit_type(client):
    resp = client.post("/api/calculator/analyze", json={"scenario_prices": ["300000"]})
    assert resp.status_code == 400


def test_sensitivity_report_json_and_html(client, reference_costs):
    payload = dict(reference_costs, square_footage=1000, unit_name="Type K", scenario_prices=["300000", "280000"])

    report = client.post("/api/calculator/report", json=payload).get_json()
    assert report["executive_summary"]["base_case"]["margin"] == "51.3%"
    assert [row["label"] for row in report["scenario_rows"]] == ["Scenario 1", "Base Case"]

    html = client.post("/api/calculator/report?format=html", json=payload)
    assert html.status_code == 200
    assert b"Executive Summary" in html.data


def test_report_without_positive_prices_is_rejected(client, reference_costs):
    payload = dict(reference_costs, square_footage=1000, scenario_prices=["0"])
    assert client.post("/api/calculator/report", json=payload).status_code == 400


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

def test_health_and_csrf_token(client):
    health = client.get("/api/health").get_json()
    assert health["status"] == "ok"
    assert health["commission"] == "5% on first $100,000, 3% on balance"

    assert client.get("/api/csrf-token").get_json()["csrf_token"]


def test_unknown_route_returns_json_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_seed_defaults_is_idempotent(app):
    assert seed_defaults() == 5
    assert seed_defaults() == 0
    assert UnitType.query.filter_by(name="Type B").first().lock_off_flex_rooms == 1
