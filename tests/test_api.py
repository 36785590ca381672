import pytest
from fastapi.testclient import TestClient

from aerocalc import SessionNotFound, StaticInsightProvider, default_registry
import api.main as main


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main._store, "provider", StaticInsightProvider("Lift is typical for a light aircraft."))
    return TestClient(main.app)


def _open(client, formula_id="lift-force"):
    r = client.post("/sessions", json={"formula_id": formula_id})
    assert r.status_code == 200
    return r.json()


def test_health(client):
    assert client.get("/health").json()["ok"] is True

def test_list_formulas_grouped(client):
    data = client.get("/formulas").json()
    assert data["count"] == len(data["items"]) >= 8
    titles = [s["title"] for s in data["sections"]]
    assert titles[:3] == ["Atmospheric State", "Flight Forces", "Drag Analysis & Efficiency"]
    assert [f["id"] for f in data["sections"][1]["formulas"]] == ["lift-force", "drag-force"]

def test_get_formula_and_unknown(client):
    assert client.get("/formulas/drag-force").json()["result_unit"] == "N"
    assert client.get("/formulas/does-not-exist").status_code == 404

def test_open_session_defaults(client):
    snap = _open(client)
    assert snap["values"] == {"rho": 1.225, "v": 50.0, "S": 20.0, "Cl": 1.2}
    assert snap["result"] == pytest.approx(36750.0)
    assert snap["insight"] is None

def test_open_session_unknown_formula(client):
    assert client.post("/sessions", json={"formula_id": "nope"}).status_code == 404

def test_set_input_and_parse_fallback(client):
    sid = _open(client, "drag-force")["session_id"]
    r = client.post(f"/sessions/{sid}/inputs", json={"id": "Cd", "value": "0.06"})
    assert r.json()["result"] == pytest.approx(1837.5)
    r = client.post(f"/sessions/{sid}/inputs", json={"id": "Cd", "value": "oops"})
    assert r.json()["values"]["Cd"] == 0.0
    assert r.json()["result"] == 0.0

def test_set_unknown_input_rejected(client):
    sid = _open(client)["session_id"]
    r = client.post(f"/sessions/{sid}/inputs", json={"id": "Cd", "value": 1})
    assert r.status_code == 422

def test_insight_cached_then_cleared(client):
    sid = _open(client)["session_id"]
    r = client.post(f"/sessions/{sid}/insight")
    assert r.json() == {"insight": "Lift is typical for a light aircraft.", "state": "idle", "discarded": False}
    assert client.get(f"/sessions/{sid}").json()["insight"] is not None
    client.post(f"/sessions/{sid}/inputs", json={"id": "v", "value": 50})
    assert client.get(f"/sessions/{sid}").json()["insight"] is None

def test_reset_and_close(client):
    sid = _open(client)["session_id"]
    client.post(f"/sessions/{sid}/inputs", json={"id": "v", "value": "0"})
    assert client.post(f"/sessions/{sid}/reset").json()["result"] == pytest.approx(36750.0)
    assert client.delete(f"/sessions/{sid}").json() == {"ok": True}
    assert client.get(f"/sessions/{sid}").status_code == 404

def test_unknown_session_is_404(client):
    # What a client sees for an id issued before an API restart
    assert client.get("/sessions/0123456789abcdef").status_code == 404
    r = client.post("/sessions/0123456789abcdef/inputs", json={"id": "v", "value": 1})
    assert r.status_code == 404

def test_store_evicts_least_recently_used():
    store = main.SessionStore(default_registry(), StaticInsightProvider(), max_sessions=2)
    first, _ = store.open("lift-force")
    second, _ = store.open("drag-force")
    store.get(first)
    third, _ = store.open("air-density")
    assert len(store) == 2
    store.get(first)
    store.get(third)
    with pytest.raises(SessionNotFound):
        store.get(second)
