"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line
"""

import logging
import os

from .config_loader import load_config, setup_logging
from .discovery.manager import WSDiscovery
from .discovery.transport import InterfaceSocketProvider
from .discovery_command_handler import DiscoveryCommandHandler
from .api.main_api import DiscoveryAPI

# Load configuration
config = load_config(os.environ.get('CONFIG_FILE', 'config/config.yaml'))
setup_logging(config)

logger = logging.getLogger(__name__)

logger.info("Initializing application components...")

discovery = WSDiscovery(InterfaceSocketProvider(config['discovery']))
handler = DiscoveryCommandHandler(discovery, config['discovery']['timeout_seconds'])

# Expose the FastAPI app for uvicorn
app = DiscoveryAPI(handler, config).app

@app.on_event("shutdown")
async def shutdown_event():
    """Abort any discovery still running on shutdown"""
    logger.info("Shutting down application...")
    handler.cancel_discovery()

logger.info("ASGI app ready for uvicorn")
