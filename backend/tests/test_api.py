import asyncio

import pytest
from fastapi.testclient import TestClient

from hydrowatch.core.rate_limit import rate_limiter
from hydrowatch.core.settings import settings
from hydrowatch.main import create_app
from hydrowatch.ml.model_registry import ModelState


@pytest.fixture
def app(service):
    rate_limiter.reset()
    return create_app(inference=service, warmup=False)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _error(response):
    body = response.json()
    assert set(body) == {"error"}
    return body["error"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-Id": "req-123"})
    assert r.headers["X-Request-Id"] == "req-123"

    generated = client.get("/health").headers["X-Request-Id"]
    assert len(generated) == 32


def test_predict_health_risk(client):
    r = client.post("/predict/health-risk", json={"hmpi": 75, "population": 100000, "timeframe": "1year"})

    assert r.status_code == 200
    assert r.json() == {"risk_increase": 0.35, "confidence": 0.9, "severity": "Moderate"}


def test_predict_source_detection(client):
    r = client.post("/predict/source-detection", json={"pollution": [0.8, 0.6, 0.3, 0.9, 0.4], "geo": [26.9, 75.8]})

    assert r.status_code == 200
    assert r.json() == {"industrial": 0.7, "agricultural": 0.2, "urban": 0.4, "natural": 0.1}


def test_predict_data_quality(client):
    r = client.post("/predict/data-quality", json={"readings": [0.01, 0.02, 0.001, 0.3, 0.01]})

    assert r.status_code == 200
    assert r.json() == {"is_valid": True, "confidence": 0.75, "anomalies": []}


def test_infer_shape_mismatch(client):
    r = client.post("/predict/infer", json={"pipeline": "health-risk", "features": [75, 100000]}, headers={"X-Request-Id": "abc"})

    assert r.status_code == 422
    err = _error(r)
    assert err["code"] == "SHAPE_MISMATCH"
    assert err["details"] == {"model": "health-risk", "expected": 3, "actual": 2}
    assert err["request_id"] == "abc"


def test_infer_unknown_pipeline(client):
    r = client.post("/predict/infer", json={"pipeline": "turbidity", "features": [1.0]})

    assert r.status_code == 404
    assert _error(r)["code"] == "UNKNOWN_PIPELINE"


def test_infer_returns_plain_result(client):
    r = client.post("/predict/infer", json={"pipeline": "health-risk", "features": [75, 100000, 1]})

    assert r.status_code == 200
    assert r.json() == {"pipeline": "health-risk", "result": {"risk_increase": 0.35, "confidence": 0.9, "severity": "Moderate"}}


def test_infer_non_finite_features(client, source):
    r = client.post(
        "/predict/infer",
        content=b'{"pipeline": "data-quality", "features": [NaN, 0, 0, 0, 0]}',
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 422
    err = _error(r)
    assert err["code"] == "VALIDATION_ERROR"
    assert err["details"][0]["input"] == "nan"
    assert source.fetches == {}


def test_unreadable_model_output_is_inference_failure(client, models):
    class RaggedModel:
        def predict(self, x):
            return [[0.1], [0.2, 0.3]]

    models["data-quality"] = RaggedModel()

    r = client.post("/predict/data-quality", json={"readings": [0.0] * 5})

    assert r.status_code == 500
    assert _error(r)["code"] == "INFERENCE_FAILED"
    assert client.get("/system/status").json()["live_buffers"] == 0


def test_load_failure_maps_to_503_then_recovers(client, source):
    source.fail["data-quality"] = FileNotFoundError("data-quality-model.joblib")
    payload = {"readings": [0.0] * 5}

    r = client.post("/predict/data-quality", json=payload)
    assert r.status_code == 503
    err = _error(r)
    assert err["code"] == "MODEL_LOAD_FAILED"
    assert err["details"] == {"model": "data-quality", "cause": "FileNotFoundError"}

    status = client.get("/system/status").json()
    assert {m["name"]: m["state"] for m in status["models"]}["data-quality"] == "failed"

    del source.fail["data-quality"]
    assert client.post("/predict/data-quality", json=payload).status_code == 200
    assert source.fetches["data-quality"] == 2


def test_validation_errors_use_standard_payload(client):
    r = client.post("/predict/health-risk", json={"hmpi": "lots", "population": 10})
    assert r.status_code == 422
    err = _error(r)
    assert err["code"] == "VALIDATION_ERROR"
    assert isinstance(err["details"], list)

    extra = client.post("/predict/data-quality", json={"readings": [0.1], "unit": "mg/L"})
    assert _error(extra)["code"] == "VALIDATION_ERROR"


def test_unknown_route(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert _error(r)["code"] == "NOT_FOUND"


def test_system_status(client):
    client.post("/predict/health-risk", json={"hmpi": 75, "population": 100000})

    body = client.get("/system/status").json()

    models = {m["name"]: m for m in body["models"]}
    assert models["health-risk"]["state"] == "ready"
    assert models["health-risk"]["load_count"] == 1
    assert body["live_buffers"] == 0
    assert body["ws_clients"] == 0


def test_service_unavailable_without_inference():
    app = create_app(inference=None, warmup=False)
    # pas de lifespan : le service n’est jamais construit
    r = TestClient(app).post("/predict/data-quality", json={"readings": [0.0] * 5})

    assert r.status_code == 503
    assert _error(r)["code"] == "SERVICE_UNAVAILABLE"


def test_insights_health_outlook(client):
    r = client.post("/insights/health-outlook", json={"hmpi": 75, "population": 100000})

    assert r.status_code == 200
    body = r.json()
    assert [p["timeframe"] for p in body["predictions"]] == ["6months", "1year", "5years"]
    assert body["predictions"][0]["severity"] == "Moderate"
    assert [p["month"] for p in body["trend"]] == [0, 6, 12, 60]


def test_insights_data_quality(client):
    r = client.post("/insights/data-quality", json={"arsenic": 0.01, "lead": 0.02})

    assert r.status_code == 200
    body = r.json()
    assert [row["parameter"] for row in body["results"]] == ["Arsenic", "Lead", "Mercury", "Iron", "Uranium"]
    assert body["overall_quality"] == pytest.approx(75.0)


def test_insights_location(client):
    r = client.post("/insights/location", json={"lat": 26.9, "lng": 75.8})

    assert r.status_code == 200
    preds = r.json()["predictions"]
    assert [p["type"] for p in preds] == ["industrial", "urban", "agricultural", "natural"]
    assert preds[0]["confidence"] == pytest.approx(70.0)


def test_insights_location_rejects_bad_coordinates(client):
    assert client.post("/insights/location", json={"lat": 120, "lng": 0}).status_code == 422


def test_monitoring_data(client):
    r = client.get("/api/monitoring-data")

    assert r.status_code == 200
    assert r.json() == [
        {"id": 1, "location": "Jaipur", "hmpi": 75.5},
        {"id": 2, "location": "Delhi", "hmpi": 120.2},
    ]


def test_citizen_report_is_acknowledged(client):
    report = {"location": "Jaipur", "description": "Brown water"}
    r = client.post("/api/citizen-reports", json=report)

    assert r.status_code == 201
    assert r.json() == {"message": "Report submitted successfully!", "data": report}


def test_emergency_alert_is_broadcast(client):
    alert = {"location": "Delhi", "severity": "critical", "whatsapp": False}

    with client.websocket_connect("/ws/alerts") as ws:
        assert ws.receive_json()["type"] == "WS_CONNECTED"
        ws.send_text("ping")
        assert ws.receive_json()["type"] == "PONG"

        r = client.post("/api/emergency-alerts", json=alert)
        assert r.status_code == 200
        body = r.json()
        assert body["message"] == "Alert triggered!"
        composed = body["data"]
        assert composed["message"].startswith("CRITICAL EMERGENCY: Severe contamination in Delhi.")
        assert composed["channels"] == ["SMS", "Email"]
        assert (composed["recipients"], composed["status"]) == (5000, "pending")

        event = ws.receive_json()
        assert event["type"] == "ALERT_TRIGGERED"
        assert event["data"] == composed


def test_emergency_alert_keeps_custom_message(client):
    r = client.post("/api/emergency-alerts", json={"location": "Jaipur", "severity": "low", "custom_message": "Boil water"})

    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Boil water"
    assert r.json()["data"]["channels"] == ["SMS", "WhatsApp", "Email"]


def test_emergency_alert_rejects_unknown_severity(client):
    r = client.post("/api/emergency-alerts", json={"location": "Jaipur", "severity": "apocalyptic"})

    assert r.status_code == 422
    assert _error(r)["code"] == "VALIDATION_ERROR"


def test_emergency_alert_requires_key_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "s3cret")

    denied = client.post("/api/emergency-alerts", json={"location": "Delhi"})
    assert denied.status_code == 401
    assert _error(denied)["code"] == "UNAUTHORIZED"

    ok = client.post("/api/emergency-alerts", json={"location": "Delhi"}, headers={"Authorization": "Bearer s3cret"})
    assert ok.status_code == 200


def test_rate_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 2)

    codes = [client.get("/api/monitoring-data").status_code for _ in range(3)]
    assert codes == [200, 200, 429]

    limited = client.get("/api/monitoring-data")
    assert _error(limited)["code"] == "RATE_LIMITED"
    # hors préfixes limités
    assert client.get("/health").status_code == 200


def test_shutdown_while_warmup_is_pending(service, source):
    # chargements bloqués : l’arrêt doit annuler puis attendre le warm-up
    source.gate = asyncio.Event()
    app = create_app(inference=service, warmup=True)

    with TestClient(app) as c:
        assert c.get("/health").status_code == 200

    assert ModelState.LOADING not in {h.state for h in service.registry.handles()}
    assert service.allocator.live_count == 0
