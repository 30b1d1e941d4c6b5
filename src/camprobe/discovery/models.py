"""
Discovery data structures and models
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class RawResponse:
    """A datagram received from a responder, kept only until parsed"""
    payload: bytes
    address: Tuple[str, int]

    @property
    def host(self) -> str:
        return self.address[0]


@dataclass
class ProbeMatch:
    scopes: str = ""
    xaddrs: str = ""
    types: str = ""


@dataclass
class ProbeMatchEnvelope:
    """Parsed ProbeMatches SOAP envelope"""
    relates_to: str
    probe_matches: List[ProbeMatch] = field(default_factory=list)


@dataclass(frozen=True)
class DiscoveredDevice:
    """Represents a device that answered our probe"""
    address: str
    model: Optional[str]
    manufacturer: str
    xaddrs: Tuple[str, ...]
    types: Tuple[str, ...]


class ProbeOutcome(Enum):
    """How an interface's collection loop ended"""
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    NO_MORE_TRAFFIC = "no_more_traffic"
    FAILED = "failed"


@dataclass
class InterfaceResult:
    """Results from one interface's probe cycle"""
    interface: str
    outcome: ProbeOutcome
    devices: List[DiscoveredDevice]
    responses_received: int
    duration_seconds: float
    error: Optional[str] = None


@dataclass
class DiscoveryResult:
    """Results from a full discovery call across all interfaces"""
    message_id: str
    started_at: datetime
    duration_seconds: float
    interfaces: List[InterfaceResult]

    @property
    def devices(self) -> List[DiscoveredDevice]:
        return [device for result in self.interfaces for device in result.devices]
