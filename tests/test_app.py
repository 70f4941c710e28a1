"""Tests de la app de exposición (/metrics, /health, /)."""

import time
from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient

from common.config import AppConfig
from exporter_api.bootstrap import build_runtime
from exporter_api.main import create_app


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    response = MagicMock()
    response.status_code = 503
    session.request.return_value = response
    return session


@pytest.fixture
def runtime(session):
    return build_runtime(AppConfig(), session=session)


class TestExpositionApp:

    def test_health(self, runtime):
        with TestClient(create_app(runtime, start_exporter=False)) as client:
            response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_index(self, runtime):
        with TestClient(create_app(runtime, start_exporter=False)) as client:
            response = client.get("/")
        assert "/metrics" in response.text

    def test_metrics_exposes_registry(self, runtime):
        runtime.registry.get_or_create_gauge("probe", "probe gauge").set(3)

        with TestClient(create_app(runtime, start_exporter=False)) as client:
            response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "smartcitizen_probe 3.0" in response.text
        assert "smartcitizen_api_requests_total 0.0" in response.text

    def test_lifespan_starts_and_stops_exporter(self, runtime, session):
        app = create_app(runtime, start_exporter=True)

        def fetch_errors():
            return runtime.registry.collector_registry.get_sample_value(
                "smartcitizen_api_errors_total", {"type": "fetch_error"}
            )

        with TestClient(app):
            assert runtime.exporter.running
            # Sin sesión el fetch falla y se cuenta como error de API
            deadline = time.time() + 2
            while not fetch_errors() and time.time() < deadline:
                time.sleep(0.01)

        assert not runtime.exporter.running
        assert fetch_errors() >= 1


class TestRuntime:

    def test_default_rules_registered(self, runtime):
        ids = {rule.id for rule in runtime.engine.rules()}
        assert ids == {
            "battery_ok", "battery_low", "battery_critical_low",
            "device_online", "device_offline",
        }

    def test_sensor_mapping_from_config(self, session):
        config = AppConfig(sensor_mapping={"Custom CO2": {"metric": "co2_ppm", "category": "air_quality"}})
        runtime = build_runtime(config, session=session)

        item, found = runtime.mapping.get("Custom CO2")
        assert found and item.metric_name() == "air_quality_co2_ppm"
        assert runtime.mapping.get("Battery SCK")[1]
