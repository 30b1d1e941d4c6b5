"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from camprobe.api.main_api import DiscoveryAPI
from camprobe.config_loader import get_sample_config
from camprobe.discovery.manager import WSDiscovery
from camprobe.discovery_command_handler import DiscoveryCommandHandler

from conftest import FakeEndpoint, FakeSocketProvider, camera_reply


@pytest.fixture
def client():
    endpoint = FakeEndpoint("eth0", replies=[(0.01, "10.0.0.5", camera_reply(
        scopes="onvif://www.onvif.org/hardware/X-1000 onvif://www.onvif.org/mfr/ACME",
        types="dn:NetworkVideoTransmitter tds:Device",
    ))])
    handler = DiscoveryCommandHandler(WSDiscovery(FakeSocketProvider([endpoint])), default_timeout=0.1)
    return TestClient(DiscoveryAPI(handler, get_sample_config()).app)


class TestDiscoveryRoutes:
    """Tests for /api/discovery routes."""

    def test_run_returns_devices(self, client):
        response = client.post("/api/discovery/run", params={"timeout": 0.1})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["devices"] == [{
            "address": "10.0.0.5",
            "model": "X-1000",
            "manufacturer": "ACME",
            "xaddrs": ["http://10.0.0.5/onvif/device_service"],
            "types": ["dn:NetworkVideoTransmitter", "tds:Device"],
        }]
        assert body["interfaces"][0]["interface"] == "eth0"

    def test_devices_after_run(self, client):
        assert client.get("/api/discovery/devices").json() == []

        client.post("/api/discovery/run")

        devices = client.get("/api/discovery/devices").json()
        assert [d["address"] for d in devices] == ["10.0.0.5"]

    @pytest.mark.parametrize("timeout", ["0", "-1", "nan", "inf"])
    def test_invalid_timeout(self, client, timeout):
        """Zero, negative and non-finite windows are rejected up front."""
        response = client.post("/api/discovery/run", params={"timeout": timeout})

        assert response.status_code == 422
        assert client.get("/api/discovery/status").json()["status"] == "idle"

    def test_status(self, client):
        assert client.get("/api/discovery/status").json()["status"] == "idle"

        client.post("/api/discovery/run")

        status = client.get("/api/discovery/status").json()
        assert status["status"] == "completed"
        assert status["devices_found"] == 1

    def test_cancel_without_discovery(self, client):
        assert client.post("/api/discovery/cancel").status_code == 404


class TestSystemRoutes:
    """Tests for /api/system routes."""

    def test_health(self, client):
        body = client.get("/api/system/health").json()

        assert body["status"] == "healthy"
        assert body["discovery"]["active"] is False
        assert body["discovery"]["known_devices"] == 0
