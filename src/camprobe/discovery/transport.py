"""
UDP endpoints bound to local network interfaces
"""

import asyncio
import ipaddress
import logging
import socket
from typing import Dict, List, Optional, Tuple, Union

import psutil

from .models import RawResponse

logger = logging.getLogger(__name__)

# Marks the end of traffic once the transport has gone away
_CLOSED = object()


class _QueueProtocol(asyncio.DatagramProtocol):
    """Forwards datagrams and socket errors into an asyncio queue"""

    def __init__(self, queue: asyncio.Queue):
        self.queue = queue

    def datagram_received(self, data: bytes, addr):
        self.queue.put_nowait(RawResponse(payload=data, address=(addr[0], addr[1])))

    def error_received(self, exc: Exception):
        self.queue.put_nowait(exc)

    def connection_lost(self, exc: Optional[Exception]):
        self.queue.put_nowait(exc if exc is not None else _CLOSED)


class UdpEndpoint:
    """One UDP socket bound to a single interface address"""

    def __init__(self, interface: str, bind_address: str, multicast_ttl: int = 2):
        self.interface = interface
        self.bind_address = bind_address
        self.multicast_ttl = multicast_ttl
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    def __repr__(self):
        return f"UdpEndpoint({self.interface}, {self.bind_address})"

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.multicast_ttl)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(self.bind_address))
            sock.bind((self.bind_address, 0))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    async def open(self) -> None:
        if self._transport is not None:
            return
        loop = asyncio.get_running_loop()
        self._transport, _ = await loop.create_datagram_endpoint(
            lambda: _QueueProtocol(self._queue),
            sock=self._create_socket(),
        )
        logger.debug(f"Opened UDP endpoint on {self.interface} ({self.bind_address})")

    async def send(self, data: bytes, address: Tuple[str, int]) -> None:
        if self._transport is None or self._closed:
            raise OSError(f"Endpoint on {self.interface} is not open")
        self._transport.sendto(data, address)

    async def receive(self) -> Optional[RawResponse]:
        """
        Wait for the next datagram. Returns None once the endpoint has closed;
        socket errors reported by the OS are raised as OSError.
        """
        if self._closed and self._queue.empty():
            return None
        item: Union[RawResponse, Exception, object] = await self._queue.get()
        if item is _CLOSED:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._transport is not None:
            self._transport.close()
        logger.debug(f"Closed UDP endpoint on {self.interface}")


class InterfaceSocketProvider:
    """Creates one UdpEndpoint per active IPv4 interface"""

    def __init__(self, config: Optional[Dict] = None):
        config = config or {}
        self.interfaces = config.get('interfaces') or []
        self.include_loopback = config.get('include_loopback', False)
        self.multicast_ttl = config.get('multicast_ttl', 2)

    def _usable_address(self, address: str) -> bool:
        try:
            ip = ipaddress.IPv4Address(address)
        except ValueError:
            return False
        if ip.is_loopback:
            return self.include_loopback
        return not ip.is_link_local and not ip.is_unspecified

    def list_interfaces(self) -> List[Tuple[str, str]]:
        """(interface name, IPv4 address) for every interface that is up"""
        stats = psutil.net_if_stats()
        found = []
        for name, addrs in psutil.net_if_addrs().items():
            if self.interfaces and name not in self.interfaces:
                continue
            if name in stats and not stats[name].isup:
                continue
            for addr in addrs:
                if addr.family == socket.AF_INET and self._usable_address(addr.address):
                    found.append((name, addr.address))
                    break
        return found

    def create_endpoints(self) -> List[UdpEndpoint]:
        endpoints = [
            UdpEndpoint(name, address, self.multicast_ttl)
            for name, address in self.list_interfaces()
        ]
        logger.info(f"Prepared {len(endpoints)} interface endpoint(s): "
                    f"{', '.join(e.interface for e in endpoints) or 'none'}")
        return endpoints
