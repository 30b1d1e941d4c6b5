"""Tests for UDP endpoints and interface enumeration."""

import asyncio
import socket
from types import SimpleNamespace

import pytest

from camprobe.discovery import transport
from camprobe.discovery.transport import InterfaceSocketProvider, UdpEndpoint


def snic(address, family=socket.AF_INET):
    return SimpleNamespace(family=family, address=address)


@pytest.fixture
def fake_interfaces(monkeypatch):
    addrs = {
        "lo": [snic("127.0.0.1")],
        "eth0": [snic("fe80::1", socket.AF_INET6), snic("192.168.1.10")],
        "eth1": [snic("10.0.0.2")],
        "wlan0": [snic("169.254.3.4")],
        "docker0": [snic("172.17.0.1")],
    }
    stats = {
        "lo": SimpleNamespace(isup=True),
        "eth0": SimpleNamespace(isup=True),
        "eth1": SimpleNamespace(isup=False),
        "wlan0": SimpleNamespace(isup=True),
        "docker0": SimpleNamespace(isup=True),
    }
    monkeypatch.setattr(transport.psutil, "net_if_addrs", lambda: addrs)
    monkeypatch.setattr(transport.psutil, "net_if_stats", lambda: stats)


class TestInterfaceSocketProvider:
    """Tests for interface enumeration."""

    def test_skips_down_loopback_and_link_local(self, fake_interfaces):
        provider = InterfaceSocketProvider()

        assert provider.list_interfaces() == [("eth0", "192.168.1.10"), ("docker0", "172.17.0.1")]

    def test_include_loopback(self, fake_interfaces):
        provider = InterfaceSocketProvider({"include_loopback": True})

        assert ("lo", "127.0.0.1") in provider.list_interfaces()

    def test_interface_allow_list(self, fake_interfaces):
        provider = InterfaceSocketProvider({"interfaces": ["eth0"], "multicast_ttl": 4})
        endpoints = provider.create_endpoints()

        assert [(e.interface, e.bind_address, e.multicast_ttl) for e in endpoints] == [("eth0", "192.168.1.10", 4)]


class TestUdpEndpoint:
    """Tests for UdpEndpoint on the loopback interface."""

    @pytest.mark.asyncio
    async def test_receive_and_close(self):
        endpoint = UdpEndpoint("lo", "127.0.0.1")
        await endpoint.open()
        port = endpoint._transport.get_extra_info("sockname")[1]

        sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sender.sendto(b"hello", ("127.0.0.1", port))
            response = await asyncio.wait_for(endpoint.receive(), 2)
        finally:
            sender.close()

        assert response.payload == b"hello"
        assert response.host == "127.0.0.1"

        endpoint.close()
        endpoint.close()
        assert await asyncio.wait_for(endpoint.receive(), 2) is None

    @pytest.mark.asyncio
    async def test_send_before_open(self):
        with pytest.raises(OSError):
            await UdpEndpoint("lo", "127.0.0.1").send(b"x", ("127.0.0.1", 9))
