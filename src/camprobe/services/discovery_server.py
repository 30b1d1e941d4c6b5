"""
Discovery Server - Main orchestrator for all services
"""

import asyncio
import logging
from typing import Dict, Optional

import uvicorn

from ..api.main_api import DiscoveryAPI
from ..config_loader import load_config, setup_logging
from ..discovery.manager import WSDiscovery
from ..discovery.transport import InterfaceSocketProvider
from ..discovery_command_handler import DiscoveryCommandHandler, DiscoveryInProgressError

logger = logging.getLogger(__name__)

class DiscoveryServer:
    """Main server running periodic camera discovery and the local API"""

    def __init__(self, config_path: str = "config/config.yaml", config: Optional[Dict] = None):
        self.config = config if config is not None else load_config(config_path)
        if config is None:
            setup_logging(self.config)

        discovery_config = self.config['discovery']
        self.discovery = WSDiscovery(InterfaceSocketProvider(discovery_config))
        self.handler = DiscoveryCommandHandler(self.discovery, discovery_config['timeout_seconds'])
        self.api = DiscoveryAPI(self.handler, self.config)

        self.running = False
        self.tasks = []
        self.api_server: Optional[uvicorn.Server] = None

    async def start(self):
        """Start discovery services and serve the API"""
        logger.info("Starting camprobe discovery server...")

        try:
            self.running = True

            # Initial discovery so the device list is populated at startup
            await self._run_discovery("startup")

            self.tasks = [
                asyncio.create_task(self._discovery_service())
            ]
            logger.info(f"All services started successfully ({len(self.tasks)} background tasks)")

            await self._start_api_server()

        except Exception as e:
            logger.error(f"Server startup failed: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Stop all server services gracefully"""
        logger.info("Stopping server...")
        self.running = False

        # Abort any discovery in flight
        self.handler.cancel_discovery()

        if self.api_server is not None:
            self.api_server.should_exit = True

        for task in self.tasks:
            task.cancel()

        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []
        logger.info("Server stopped")

    async def _run_discovery(self, reason: str):
        try:
            result = await self.handler.execute_discovery_command()
        except DiscoveryInProgressError as e:
            logger.info(f"Skipping {reason} discovery: {e}")
            return None

        addresses = [device.address for device in result.devices]
        logger.info(f"[{reason.upper()} DISCOVERY] {result.status.value}: {len(addresses)} device(s)"
                    + (f" - {', '.join(addresses)}" if addresses else ""))
        return result

    async def _discovery_service(self):
        """
        Background service for periodic device discovery
        """
        interval_minutes = self.config['discovery']['scan_interval_minutes']
        if not interval_minutes:
            logger.info("Periodic discovery disabled")
            return

        scan_interval = interval_minutes * 60
        logger.info(f"Discovery service started (every {interval_minutes} minutes)")

        while self.running:
            try:
                await asyncio.sleep(scan_interval)
                if not self.running:
                    break

                logger.info("[REFRESH] Running periodic discovery...")
                await self._run_discovery("periodic")

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Discovery service error: {e}")

    async def _start_api_server(self):
        """Start the FastAPI server"""
        config = uvicorn.Config(
            self.api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        server = uvicorn.Server(config)
        self.api_server = server

        logger.info(f"Starting API server on {self.config['api']['host']}:{self.config['api']['port']}")
        logger.info(f"API documentation: http://localhost:{self.config['api']['port']}/docs")

        await server.serve()
