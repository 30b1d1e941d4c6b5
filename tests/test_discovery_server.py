"""Tests for the discovery server's background services."""

import asyncio
from types import SimpleNamespace

import pytest

from camprobe.config_loader import get_sample_config
from camprobe.discovery_command_handler import DiscoveryStatus
from camprobe.services.discovery_server import DiscoveryServer

from conftest import FakeEndpoint, FakeSocketProvider, camera_reply


def make_server(scan_interval_minutes=0, endpoints=()):
    config = get_sample_config()
    config["discovery"].update({"timeout_seconds": 0.1, "scan_interval_minutes": scan_interval_minutes})
    server = DiscoveryServer(config=config)
    server.discovery.socket_provider = FakeSocketProvider(list(endpoints))
    return server


class TestDiscoveryServer:
    """Tests for DiscoveryServer."""

    @pytest.mark.asyncio
    async def test_run_discovery_populates_devices(self):
        server = make_server(endpoints=[FakeEndpoint("eth0", replies=[(0.01, "10.0.0.5", camera_reply())])])

        result = await server._run_discovery("startup")

        assert result.status == DiscoveryStatus.COMPLETED
        assert [d.address for d in server.handler.last_devices] == ["10.0.0.5"]

    @pytest.mark.asyncio
    async def test_periodic_discovery_disabled(self):
        server = make_server(scan_interval_minutes=0)
        server.running = True

        await asyncio.wait_for(server._discovery_service(), 1)

        assert server.handler.last_result is None

    @pytest.mark.asyncio
    async def test_stop_cancels_background_tasks(self):
        server = make_server(scan_interval_minutes=30)
        server.running = True
        server.tasks = [asyncio.create_task(server._discovery_service())]
        await asyncio.sleep(0)

        await server.stop()

        assert server.running is False
        assert server.tasks == []

    @pytest.mark.asyncio
    async def test_stop_shuts_down_api_server(self):
        """stop() should also tell uvicorn to exit."""
        server = make_server()
        server.api_server = SimpleNamespace(should_exit=False)

        await server.stop()

        assert server.api_server.should_exit is True
