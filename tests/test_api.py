"""
API Tests
=========

Tests for the FastAPI surface using the in-process test client.
"""

import pytest
from fastapi.testclient import TestClient

from regionwatch import main
from regionwatch.models import DetectorState, RecognitionEvent


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


class TestServiceEndpoints:
    """Tests for info, health and readiness endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["service"] == "regionwatch"
        assert body["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_not_ready_until_started(self, client):
        assert client.get("/ready").status_code == 503

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert {"scheduler", "cycle", "recognition", "source"} <= set(body)
        assert body["scheduler"]["running"] is False


class TestCaptureControl:
    """Tests for starting and stopping the capture loop."""

    def test_start_and_stop(self, client):
        response = client.post("/capture/start", json={"interval_ms": 5000})
        assert response.status_code == 200
        assert response.json() == {"status": "running", "interval_ms": 5000}
        assert client.get("/ready").status_code == 200

        response = client.post("/capture/stop")
        assert response.status_code == 200
        assert response.json()["status"] == "stopped"
        assert client.get("/ready").status_code == 503

    def test_stop_when_idle(self, client):
        assert client.post("/capture/stop").status_code == 200

    def test_interval_validated(self, client):
        response = client.post("/capture/start", json={"interval_ms": 1})
        assert response.status_code == 422


class TestSessionUpdates:
    """Tests for region and preprocessing updates."""

    def test_update_region_resets_detector(self, client):
        response = client.put(
            "/region", json={"x": 5, "y": 6, "width": 100, "height": 20}
        )
        assert response.status_code == 200

        cycle = main.get_cycle()
        assert cycle.source.region.width == 100
        assert cycle.detector.state == DetectorState.IDLE

    def test_update_preprocess(self, client):
        response = client.put("/preprocess", json={"invert": True, "blur_radius": 2})
        assert response.status_code == 200
        assert response.json()["invert"] is True

        config = main.get_cycle().preprocess_config
        assert config.invert
        assert config.blur_radius == 2
        assert not config.binarize_enabled

    def test_invalid_preprocess_rejected(self, client):
        response = client.put("/preprocess", json={"binarize_threshold": 200})
        assert response.status_code == 422


class TestTextEndpoint:
    """Tests for the latest recognition result."""

    def test_no_text_yet(self, client):
        assert client.get("/text").status_code == 503

    def test_latest_event(self, client):
        main.get_dispatcher().last_event = RecognitionEvent(
            success=True,
            text="こんにちは",
            frame_id=12,
            timestamp=1707321234.5,
            latency_ms=80.0,
        )

        response = client.get("/text")
        assert response.status_code == 200
        body = response.json()
        assert body["text"] == "こんにちは"
        assert body["frame_id"] == 12
        assert body["success"] is True
