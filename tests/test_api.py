"""Tests for the FastAPI layer (api/app.py, api/routes.py, api/session.py)."""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from config import DISCLAIMER
from measurement.settings import MeasurementConfig


def _payload(samples):
    return {
        "samples": [
            {"timestamp": s.timestamp, "value": s.value, "channel": s.channel.value}
            for s in samples
        ]
    }


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        yield c


def _run(client, samples, batch=100):
    responses = []
    for i in range(0, len(samples), batch):
        responses.append(client.post("/measurement/samples", json=_payload(samples[i:i + batch])))
    return responses


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestStart:
    def test_start_defaults_to_finger(self, client):
        r = client.post("/measurement/start", json={})
        assert r.status_code == 200
        assert r.json()["status"] == "calibrating"
        assert r.json()["mode"] == "finger"

    def test_double_start_conflicts(self, client):
        client.post("/measurement/start", json={"mode": "face"})
        r = client.post("/measurement/start", json={"mode": "finger"})
        assert r.status_code == 409

    def test_invalid_config_is_rejected(self, client):
        r = client.post("/measurement/start", json={"config": {"min_hr": 150, "max_hr": 100}})
        assert r.status_code == 422

    def test_unknown_mode_is_rejected(self, client):
        r = client.post("/measurement/start", json={"mode": "ultrasound"})
        assert r.status_code == 422


class TestSamples:
    def test_samples_without_session_conflict(self, client, pulse_72):
        r = client.post("/measurement/samples", json=_payload(pulse_72[:10]))
        assert r.status_code == 409

    def test_empty_batch_is_rejected(self, client):
        client.post("/measurement/start", json={})
        r = client.post("/measurement/samples", json={"samples": []})
        assert r.status_code == 422

    def test_progress_is_reported(self, client, pulse_72):
        client.post("/measurement/start", json={})
        r = client.post("/measurement/samples", json=_payload(pulse_72[:151]))
        body = r.json()
        assert body["accepted"] == 151
        assert body["phase"] == "measuring"
        assert body["progress_percent"] == pytest.approx(33.3)


class TestFullRun:
    def test_result_before_completion_is_404(self, client):
        assert client.get("/measurement/result").status_code == 404

    def test_72_bpm_run(self, client, pulse_72):
        client.post("/measurement/start", json={"mode": "finger"})
        responses = _run(client, pulse_72)
        assert all(r.status_code == 200 for r in responses)
        assert responses[-1].json()["phase"] == "complete"

        status = client.get("/measurement/status").json()
        assert status["phase"] == "complete"
        assert status["disclaimer"] == DISCLAIMER

        result = client.get("/measurement/result")
        assert result.status_code == 200
        measurement = result.json()["measurement"]
        assert 69 <= measurement["heart_rate_bpm"] <= 75
        assert measurement["capture_mode"] == "finger"
        assert measurement["health_zone"] == "Below Target"

        history = client.get("/history").json()
        assert history["count"] == 1
        assert history["measurements"][0]["heart_rate_bpm"] == measurement["heart_rate_bpm"]

    def test_samples_after_completion_conflict(self, client, pulse_72):
        client.post("/measurement/start", json={})
        _run(client, pulse_72)
        r = client.post("/measurement/samples", json=_payload(pulse_72[:5]))
        assert r.status_code == 409

    def test_flat_run_reports_retry(self, client, flat_15s):
        client.post("/measurement/start", json={})
        _run(client, flat_15s)

        status = client.get("/measurement/status").json()
        assert status["phase"] == "idle"
        assert "Low signal quality" in status["message"]
        assert client.get("/measurement/result").status_code == 404
        assert client.get("/history").json()["count"] == 0


class TestStop:
    def test_stop_is_idempotent(self, client):
        assert client.post("/measurement/stop").status_code == 200
        client.post("/measurement/start", json={})
        assert client.post("/measurement/stop").status_code == 200
        assert client.post("/measurement/stop").status_code == 200
        assert client.get("/measurement/status").json()["phase"] == "idle"

    def test_start_after_stop(self, client):
        client.post("/measurement/start", json={})
        client.post("/measurement/stop")
        assert client.post("/measurement/start", json={}).status_code == 200


class TestConfigOverrides:
    @pytest.fixture
    def tuned_client(self):
        server = MeasurementConfig(measurement_duration_ms=8_000, calibration_ms=2_000, min_hr=45)
        with TestClient(create_app(server)) as c:
            yield c

    def test_partial_override_keeps_server_config(self, tuned_client):
        r = tuned_client.post("/measurement/start", json={"config": {"max_hr": 180}})
        assert r.status_code == 200

        config = tuned_client.app.state.service.controller.session.config
        assert config.max_hr == 180
        assert config.min_hr == 45
        assert config.measurement_duration_ms == 8_000
        assert config.calibration_ms == 2_000

    def test_no_override_uses_server_config(self, tuned_client):
        tuned_client.post("/measurement/start", json={})
        assert tuned_client.app.state.service.controller.session.config.measurement_duration_ms == 8_000

    def test_override_clashing_with_server_config(self, tuned_client):
        """calibration_ms 5000 is valid against the 15 s default but not the server's 8 s."""
        r = tuned_client.post("/measurement/start", json={"config": {"calibration_ms": 5_000}})
        assert r.status_code == 200

        tuned_client.post("/measurement/stop")
        r = tuned_client.post("/measurement/start", json={"config": {"calibration_ms": 10_000}})
        assert r.status_code == 422
        assert tuned_client.get("/measurement/status").json()["phase"] == "idle"
