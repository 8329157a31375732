"""HTTP tests for the FastAPI surface."""

import pytest
from fastapi.testclient import TestClient

from circuitsim.main import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        yield c


def _blink_payload() -> dict:
    return {
        "components": [
            {"id": "uno", "kind": "arduino-uno"},
            {"id": "led1", "kind": "led"},
            {
                "id": "temp",
                "kind": "temperature-sensor",
                "properties": {"min_value": 0, "max_value": 100},
            },
        ],
        "connections": [
            {
                "from": {"componentId": "uno", "pin": "D13"},
                "to": {"componentId": "led1", "pin": "anode"},
            },
            {
                "from": {"componentId": "temp", "pin": "OUT"},
                "to": {"componentId": "uno", "pin": "A0"},
            },
        ],
    }


def _start(client: TestClient) -> str:
    resp = client.post("/api/simulations", json={"graph": _blink_payload()})
    assert resp.status_code == 201
    return resp.json()["sessionId"]


class TestMeta:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_component_catalog(self, client):
        kinds = [c["kind"] for c in client.get("/api/components").json()]
        assert len(kinds) == 17
        assert "voltage-source" in kinds

    def test_component_lookup(self, client):
        data = client.get("/api/components/esp32").json()
        assert data["category"] == "microcontroller"
        assert data["digital_pin_count"] == 16

    def test_unknown_component_kind(self, client):
        resp = client.get("/api/components/tardis")
        assert resp.status_code == 422
        assert resp.json()["code"] == "UnknownKind"


class TestAnalysis:
    def test_clean_circuit(self, client):
        resp = client.post("/api/analysis", json=_blink_payload())
        assert resp.status_code == 200
        assert resp.json() == {"issues": [], "score": 100}

    def test_missing_power(self, client):
        payload = {"components": [{"id": "led1", "kind": "led"}], "connections": []}
        data = client.post("/api/analysis", json=payload).json()
        codes = [i["code"] for i in data["issues"]]
        assert codes.count("NoPowerSource") == 1
        unconnected = next(i for i in data["issues"] if i["code"] == "Unconnected")
        assert unconnected["componentId"] == "led1"

    def test_bad_pin(self, client):
        payload = _blink_payload()
        payload["connections"][0]["to"]["pin"] = "gate"
        resp = client.post("/api/analysis", json=payload)
        assert resp.status_code == 422
        assert resp.json()["code"] == "UnknownPin"

    def test_duplicate_id(self, client):
        payload = _blink_payload()
        payload["components"].append({"id": "uno", "kind": "esp32"})
        resp = client.post("/api/analysis", json=payload)
        assert resp.status_code == 422
        assert resp.json()["code"] == "DuplicateId"


class TestSimulation:
    def test_start(self, client):
        resp = client.post("/api/simulations", json={"graph": _blink_payload()})
        data = resp.json()
        assert data["status"] == "running"
        assert data["initialAnalysis"]["score"] == 100

    def test_step(self, client):
        sid = _start(client)
        client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 100})
        delta = client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 50}).json()
        assert delta["timeMs"] == 150
        assert delta["outputValues"]["led1"]["brightness"] == 255
        assert delta["sensorValues"]["temp"]["adcValue"] == 256
        assert len(delta["logTail"]) == 2

    def test_clock_overflow_rejected(self, client):
        sid = _start(client)
        first = client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 1e308})
        assert first.json()["timeMs"] == 1e308
        resp = client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 1e308})
        assert resp.status_code == 422
        assert resp.json()["code"] == "InvalidTimeStep"
        assert client.get(f"/api/simulations/{sid}").json()["timeMs"] == 1e308

    def test_unknown_sensor_override(self, client):
        body = {"graph": _blink_payload(), "config": {"sensorOverrides": {"led1": 1}}}
        resp = client.post("/api/simulations", json=body)
        assert resp.status_code == 422
        assert resp.json()["code"] == "InvalidSensorOverride"
        assert client.get("/api/simulations").json() == []

    def test_step_default_dt(self, client):
        sid = _start(client)
        assert client.post(f"/api/simulations/{sid}/step").json()["timeMs"] == 100

    def test_negative_step_rejected(self, client):
        sid = _start(client)
        resp = client.post(f"/api/simulations/{sid}/step", json={"dtMillis": -5})
        assert resp.status_code == 422

    def test_sensor_update(self, client):
        sid = _start(client)
        resp = client.post(f"/api/simulations/{sid}/sensors", json={"temp": 150})
        assert resp.json()["updated"] == {"temp": 100}

    def test_sensor_batch_with_nan_changes_nothing(self, client):
        payload = _blink_payload()
        payload["components"].append({"id": "pot", "kind": "potentiometer"})
        sid = client.post("/api/simulations", json={"graph": payload}).json()["sessionId"]
        resp = client.post(
            f"/api/simulations/{sid}/sensors",
            content='{"temp": 70, "pot": NaN}',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "InvalidSensorValue"
        delta = client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 10}).json()
        assert delta["sensorValues"]["temp"]["value"] == 25

    def test_sensor_update_unknown_component(self, client):
        sid = _start(client)
        resp = client.post(f"/api/simulations/{sid}/sensors", json={"led1": 1})
        assert resp.status_code == 404
        assert resp.json()["code"] == "UnknownComponent"

    def test_pause_blocks_step(self, client):
        sid = _start(client)
        assert client.post(f"/api/simulations/{sid}/pause").json()["status"] == "paused"
        resp = client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 10})
        assert resp.status_code == 409
        assert resp.json()["code"] == "NotRunning"
        assert client.post(f"/api/simulations/{sid}/resume").json()["status"] == "running"

    def test_double_resume(self, client):
        sid = _start(client)
        resp = client.post(f"/api/simulations/{sid}/resume")
        assert resp.status_code == 409
        assert resp.json()["code"] == "InvalidStateTransition"

    def test_summary_and_listing(self, client):
        sid = _start(client)
        client.post(f"/api/simulations/{sid}/step", json={"dtMillis": 10})
        summary = client.get(f"/api/simulations/{sid}").json()
        assert summary["stepCount"] == 1
        assert summary["componentCount"] == 3
        listed = client.get("/api/simulations").json()
        assert [s["sessionId"] for s in listed] == [sid]

    def test_stop(self, client):
        sid = _start(client)
        resp = client.delete(f"/api/simulations/{sid}")
        assert resp.json()["status"] == "stopped"
        missing = client.get(f"/api/simulations/{sid}")
        assert missing.status_code == 404
        assert missing.json()["code"] == "SessionNotFound"
