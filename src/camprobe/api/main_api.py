"""
Main FastAPI application setup
"""

from fastapi import FastAPI
from typing import Dict
from datetime import datetime, timezone
import logging

from .. import __version__
from ..discovery_command_handler import DiscoveryCommandHandler
from .discovery_routes import create_discovery_routes

logger = logging.getLogger(__name__)


class DiscoveryAPI:
    """Local HTTP API for running and inspecting camera discovery"""

    def __init__(self, handler: DiscoveryCommandHandler, config: Dict):
        self.handler = handler
        self.config = config
        self.app = FastAPI(
            title="camprobe Discovery Server",
            description="Local API for WS-Discovery camera discovery",
            version=__version__
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        self.app.include_router(create_discovery_routes(self.handler))
        self._setup_system_routes()

    def _setup_system_routes(self):
        @self.app.get("/api/system/health")
        async def system_health():
            """System health check"""
            status = self.handler.get_status()
            return {
                "status": "healthy",
                "discovery": {
                    "active": self.handler.is_discovery_active(),
                    "last_status": status['status'],
                    "known_devices": len(self.handler.last_devices)
                },
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
