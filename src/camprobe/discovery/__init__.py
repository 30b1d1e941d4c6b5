"""
Discovery module for WS-Discovery camera discovery
"""

from .manager import WSDiscovery
from .models import DiscoveredDevice, DiscoveryResult, InterfaceResult, ProbeOutcome
from .transport import InterfaceSocketProvider, UdpEndpoint

__all__ = ['WSDiscovery', 'DiscoveredDevice', 'DiscoveryResult', 'InterfaceResult',
           'ProbeOutcome', 'InterfaceSocketProvider', 'UdpEndpoint']
