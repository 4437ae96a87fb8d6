import pytest
from fastapi.testclient import TestClient

from factories import JAVA_SETTINGS, employee, overhead_type, snapshot
from ratehub.main import app
from ratehub.routers import pricing as pricing_router
from ratehub.services.snapshot_service import ScenarioNotFound


@pytest.fixture
def client():
    # No context manager: the lifespan would try to open a database pool.
    return TestClient(app)


def _body(snap, **extra):
    return {"snapshot": snap.model_dump(mode="json", by_alias=True), **extra}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_compute_pricing(client, java_snapshot):
    response = client.post("/api/pricing/compute", json=_body(java_snapshot))

    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "primary"
    assert data["stacks"][0]["stackId"] == "java"
    assert data["stacks"][0]["finalPrice"] == pytest.approx(396)
    assert data["shared"]["qaCostPerDevRelHour"] == 0
    assert data["validation"]["missingSettings"] == []


def test_compute_pricing_rejects_invalid_records(client):
    body = _body(snapshot())
    body["snapshot"]["overheadTypes"] = [{"id": "x", "name": "X", "amount": -5, "period": "annual"}]
    assert client.post("/api/pricing/compute", json=body).status_code == 422


def test_breakdown(client, java_snapshot):
    response = client.post("/api/pricing/breakdown", json=_body(java_snapshot, stackId="java", key="final_price_hr"))

    assert response.status_code == 200
    node = response.json()
    assert node["op"] == "product"
    assert node["result"] == pytest.approx(396)
    assert [child["key"] for child in node["inputs"]] == ["total_releaseable_cost_hr", "margin_factor", "risk_factor"]


@pytest.mark.parametrize("stack_id,key", [("java", "nope"), ("cobol", "final_price_hr")])
def test_breakdown_unknown_key_or_stack(client, java_snapshot, stack_id, key):
    response = client.post("/api/pricing/breakdown", json=_body(java_snapshot, stackId=stack_id, key=key))
    assert response.status_code == 404


def test_stored_pricing(client, monkeypatch, java_snapshot):
    requested = []

    async def fake_load(scenario_id=None):
        requested.append(scenario_id)
        return java_snapshot

    monkeypatch.setattr(pricing_router, "load_snapshot", fake_load)
    response = client.get("/api/pricing", params={"scenarioId": "lean"})

    assert response.status_code == 200
    assert response.json()["scenarioId"] == "lean"
    assert requested == ["lean"]


def test_stored_pricing_unknown_scenario(client, monkeypatch):
    async def fake_load(scenario_id=None):
        raise ScenarioNotFound(scenario_id)

    monkeypatch.setattr(pricing_router, "load_snapshot", fake_load)
    assert client.get("/api/pricing", params={"scenarioId": "gone"}).status_code == 404


def test_stored_pricing_database_down(client, monkeypatch):
    async def fake_load(scenario_id=None):
        raise RuntimeError("Database configuration is missing.")

    monkeypatch.setattr(pricing_router, "load_snapshot", fake_load)
    assert client.get("/api/pricing").status_code == 503


def test_dashboard_summary(client, java_snapshot):
    response = client.post("/api/dashboard/summary", json=_body(java_snapshot))

    assert response.status_code == 200
    assert response.json()["totalActiveMonthlyCost"] == pytest.approx(30000)


def test_allocation_proposal(client):
    snap = snapshot(
        employees=[employee("dev-1", gross_monthly=30000), employee("dev-2", gross_monthly=10000)],
        overhead_types=[overhead_type("office", 1200)],
    )
    response = client.post(
        "/api/allocations/proposal", json=_body(snap, overheadTypeId="office", mode="proportional")
    )

    assert response.status_code == 200
    assert [s["share"] for s in response.json()["shares"]] == [pytest.approx(0.75), pytest.approx(0.25)]


def test_allocation_proposal_unknown_type(client, java_snapshot):
    response = client.post("/api/allocations/proposal", json=_body(java_snapshot, overheadTypeId="ghost"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Overhead type not found"


def test_dashboard_summary_in_secondary_currency(client, java_snapshot):
    values = dict(JAVA_SETTINGS, exchange_ratio="4")
    snap = snapshot(employees=java_snapshot.employees, setting_values=values)
    data = client.post("/api/dashboard/summary", json=_body(snap)).json()

    assert data["currency"] == "secondary"
    assert data["exchangeRatio"] == 4
    assert data["totalActiveMonthlyCost"] == pytest.approx(7500)
