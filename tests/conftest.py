"""Shared test helpers: in-memory endpoints standing in for interface sockets."""

import asyncio
import re
from typing import List, Optional, Tuple

from camprobe.discovery.models import RawResponse

MESSAGE_ID_RE = re.compile(rb"<a:MessageID>uuid:([0-9a-f\-]+)</a:MessageID>")


def probe_match_xml(relates_to: str, scopes: Optional[str] = "", xaddrs: str = "",
                    types: str = "dn:NetworkVideoTransmitter", matches: int = 1) -> bytes:
    """ProbeMatches envelope as a camera would send it."""
    match = (
        "<d:ProbeMatch>"
        "<a:EndpointReference><a:Address>urn:uuid:0000</a:Address></a:EndpointReference>"
        f"<d:Types>{types}</d:Types>"
        + (f"<d:Scopes>{scopes}</d:Scopes>" if scopes is not None else "")
        + f"<d:XAddrs>{xaddrs}</d:XAddrs>"
        "<d:MetadataVersion>1</d:MetadataVersion>"
        "</d:ProbeMatch>"
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://www.w3.org/2003/05/soap-envelope" '
        'xmlns:a="http://schemas.xmlsoap.org/ws/2004/08/addressing" '
        'xmlns:d="http://schemas.xmlsoap.org/ws/2005/04/discovery" '
        'xmlns:dn="http://www.onvif.org/ver10/network/wsdl">'
        "<SOAP-ENV:Header>"
        "<a:MessageID>uuid:ffff</a:MessageID>"
        f"<a:RelatesTo>{relates_to}</a:RelatesTo>"
        "<a:Action>http://schemas.xmlsoap.org/ws/2005/04/discovery/ProbeMatches</a:Action>"
        "</SOAP-ENV:Header>"
        "<SOAP-ENV:Body>"
        f"<d:ProbeMatches>{match * matches}</d:ProbeMatches>"
        "</SOAP-ENV:Body>"
        "</SOAP-ENV:Envelope>"
    ).encode("utf-8")


def camera_reply(scopes="onvif://www.onvif.org/hardware/X-1000 onvif://www.onvif.org/name/Acme%20Corp",
                 xaddrs="http://10.0.0.5/onvif/device_service", **kwargs):
    """Reply factory: builds a correlated reply once the probe's message id is known."""
    return lambda message_id: probe_match_xml(f"uuid:{message_id}", scopes=scopes, xaddrs=xaddrs, **kwargs)


class FakeEndpoint:
    """
    Implements the endpoint contract in memory.
    replies: (delay seconds after the probe, sender host, factory(message_id) -> bytes)
    """

    def __init__(self, interface: str, replies: List[Tuple] = None,
                 fail_on_open: bool = False, fail_on_send: bool = False,
                 close_after: Optional[float] = None):
        self.interface = interface
        self.replies = replies or []
        self.fail_on_open = fail_on_open
        self.fail_on_send = fail_on_send
        self.close_after = close_after
        self.sent: List[Tuple[bytes, Tuple[str, int]]] = []
        self.close_calls = 0
        self._queue: asyncio.Queue = asyncio.Queue()

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    async def open(self):
        if self.fail_on_open:
            raise OSError(f"cannot bind {self.interface}")

    async def send(self, data, address):
        if self.fail_on_send:
            raise OSError("Network is unreachable")
        self.sent.append((data, address))
        message_id = MESSAGE_ID_RE.search(data).group(1).decode()
        loop = asyncio.get_running_loop()
        for delay, host, factory in self.replies:
            response = RawResponse(payload=factory(message_id), address=(host, 3702))
            loop.call_later(delay, self._queue.put_nowait, response)
        if self.close_after is not None:
            loop.call_later(self.close_after, self._queue.put_nowait, None)

    async def receive(self):
        return await self._queue.get()

    def close(self):
        self.close_calls += 1


class FakeSocketProvider:
    def __init__(self, endpoints):
        self.endpoints = endpoints

    def create_endpoints(self):
        return list(self.endpoints)
