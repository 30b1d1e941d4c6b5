"""
API module for discovery control and monitoring
"""

from .main_api import DiscoveryAPI
from .discovery_routes import create_discovery_routes

__all__ = ['DiscoveryAPI', 'create_discovery_routes']
