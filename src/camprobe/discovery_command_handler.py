"""
Discovery Command Handler
Runs discovery rounds on request, tracks the active round and supports
cancelling it
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .discovery.manager import WSDiscovery, validate_timeout
from .discovery.models import DiscoveredDevice, DiscoveryResult

logger = logging.getLogger(__name__)

class DiscoveryStatus(Enum):
    """Discovery command status"""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

@dataclass
class DiscoveryCommandResult:
    """Final discovery command result"""
    command_id: str
    status: DiscoveryStatus
    started_at: datetime
    execution_time_seconds: float
    devices: List[DiscoveredDevice] = field(default_factory=list)
    interfaces: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

class DiscoveryInProgressError(RuntimeError):
    """Raised when a discovery is requested while another one is running"""

    def __init__(self, command_id: str):
        super().__init__(f"Discovery {command_id} already in progress")
        self.command_id = command_id

class DiscoveryCommandHandler:
    """Handles discovery command execution with status tracking"""

    def __init__(self, discovery: WSDiscovery, default_timeout: float = 5):
        self.discovery = discovery
        self.default_timeout = default_timeout

        # Track active discovery
        self.active_discovery: Optional[Dict] = None
        self.last_result: Optional[DiscoveryCommandResult] = None
        self.last_devices: List[DiscoveredDevice] = []

    def is_discovery_active(self) -> bool:
        """Check if discovery is currently active"""
        return self.active_discovery is not None

    async def execute_discovery_command(self, timeout: Optional[float] = None,
                                        command_id: Optional[str] = None) -> DiscoveryCommandResult:
        """
        Run one discovery round.
        Invalid timeouts raise ValueError and a concurrent request raises
        DiscoveryInProgressError, both before any network activity.
        """
        timeout = self.default_timeout if timeout is None else timeout
        validate_timeout(timeout)

        if self.active_discovery:
            raise DiscoveryInProgressError(self.active_discovery['command_id'])

        command_id = command_id or f"discover_{int(time.time() * 1000)}"
        cancel_event = asyncio.Event()
        started_at = datetime.now(timezone.utc)
        start_time = time.time()

        self.active_discovery = {
            "command_id": command_id,
            "started_at": started_at,
            "timeout": timeout,
            "cancel_event": cancel_event
        }

        try:
            logger.info(f"[LAUNCH] Starting discovery command {command_id} (timeout {timeout}s)")
            discovery_result = await self.discovery.discover_detailed(timeout, cancel_event)
            result = self._build_result(command_id, discovery_result, cancel_event.is_set())

        except Exception as e:
            logger.error(f"Discovery command {command_id} failed: {e}")
            result = DiscoveryCommandResult(
                command_id=command_id,
                status=DiscoveryStatus.FAILED,
                started_at=started_at,
                execution_time_seconds=time.time() - start_time,
                error={
                    "code": "DISCOVERY_EXECUTION_ERROR",
                    "message": str(e)
                }
            )
        finally:
            self.active_discovery = None

        self.last_result = result
        if result.status == DiscoveryStatus.COMPLETED:
            self.last_devices = result.devices
        return result

    def _build_result(self, command_id: str, discovery_result: DiscoveryResult,
                      cancelled: bool) -> DiscoveryCommandResult:
        status = DiscoveryStatus.CANCELLED if cancelled else DiscoveryStatus.COMPLETED
        interfaces = [
            {
                "interface": r.interface,
                "outcome": r.outcome.value,
                "devices_found": len(r.devices),
                "responses_received": r.responses_received,
                "duration_seconds": round(r.duration_seconds, 3),
                "error": r.error
            }
            for r in discovery_result.interfaces
        ]
        logger.info(f"Discovery command {command_id} {status.value}: "
                    f"{len(discovery_result.devices)} device(s)")
        return DiscoveryCommandResult(
            command_id=command_id,
            status=status,
            started_at=discovery_result.started_at,
            execution_time_seconds=discovery_result.duration_seconds,
            devices=discovery_result.devices,
            interfaces=interfaces
        )

    def cancel_discovery(self, command_id: Optional[str] = None) -> bool:
        """Cancel the active discovery; returns False when nothing matches"""
        if not self.active_discovery:
            return False
        if command_id and self.active_discovery['command_id'] != command_id:
            return False

        logger.info(f"Cancelling discovery command {self.active_discovery['command_id']}")
        self.active_discovery['cancel_event'].set()
        return True

    def get_status(self) -> Dict[str, Any]:
        """Status of the active discovery, or of the last finished one"""
        if self.active_discovery:
            return {
                "command_id": self.active_discovery['command_id'],
                "status": DiscoveryStatus.IN_PROGRESS.value,
                "started_at": self.active_discovery['started_at'],
                "execution_time_seconds": (datetime.now(timezone.utc) - self.active_discovery['started_at']).total_seconds(),
                "devices_found": None,
                "error": None
            }

        if self.last_result:
            return {
                "command_id": self.last_result.command_id,
                "status": self.last_result.status.value,
                "started_at": self.last_result.started_at,
                "execution_time_seconds": self.last_result.execution_time_seconds,
                "devices_found": len(self.last_result.devices),
                "error": self.last_result.error
            }

        return {
            "command_id": None,
            "status": "idle",
            "started_at": None,
            "execution_time_seconds": 0.0,
            "devices_found": None,
            "error": None
        }
