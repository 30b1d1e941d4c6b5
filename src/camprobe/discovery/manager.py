"""
Discovery orchestrator: fans a WS-Discovery probe out over every interface
"""

import asyncio
import logging
import math
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from .models import DiscoveredDevice, DiscoveryResult, InterfaceResult, ProbeOutcome
from .prober import InterfaceProber
from .transport import InterfaceSocketProvider

logger = logging.getLogger(__name__)


def validate_timeout(timeout) -> None:
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ValueError(f"timeout must be a number of seconds, got {timeout!r}")
    if not math.isfinite(timeout) or timeout <= 0:
        raise ValueError(f"timeout must be a positive finite number of seconds, got {timeout!r}")


class WSDiscovery:
    """Main discovery service for WS-Discovery capable cameras"""

    def __init__(self, socket_provider=None):
        self.socket_provider = socket_provider or InterfaceSocketProvider()

    async def discover(self, timeout: float,
                       cancel_event: Optional[asyncio.Event] = None) -> List[DiscoveredDevice]:
        """Probe every interface and return the devices that answered"""
        result = await self.discover_detailed(timeout, cancel_event)
        return result.devices

    async def discover_detailed(self, timeout: float,
                                cancel_event: Optional[asyncio.Event] = None) -> DiscoveryResult:
        """
        Run one discovery round and keep the per-interface breakdown.

        Each interface gets its own prober and copy of the timeout; all share
        the message id and cancel event. An interface that fails contributes
        nothing and does not affect the others.
        """
        validate_timeout(timeout)
        cancel_event = cancel_event or asyncio.Event()

        message_id = uuid.uuid4()
        started_at = datetime.now(timezone.utc)
        start_time = time.time()

        endpoints = self.socket_provider.create_endpoints()
        if not endpoints:
            logger.warning("No active network interfaces to probe")

        logger.info(f"[SEARCH] Probing {len(endpoints)} interface(s) for {timeout}s (message {message_id})")
        probers = [InterfaceProber(endpoint) for endpoint in endpoints]
        outcomes = await asyncio.gather(
            *(prober.run(message_id, timeout, cancel_event) for prober in probers),
            return_exceptions=True,
        )

        interface_results: List[InterfaceResult] = []
        for prober, outcome in zip(probers, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, Exception):
                logger.warning(f"Discovery on {prober.interface} failed: {outcome}")
                interface_results.append(InterfaceResult(
                    interface=prober.interface,
                    outcome=ProbeOutcome.FAILED,
                    devices=[],
                    responses_received=0,
                    duration_seconds=time.time() - start_time,
                    error=str(outcome),
                ))
            else:
                interface_results.append(outcome)

        result = DiscoveryResult(
            message_id=str(message_id),
            started_at=started_at,
            duration_seconds=time.time() - start_time,
            interfaces=interface_results,
        )
        logger.info(f"[PASS] Discovery complete: {len(result.devices)} device(s) "
                    f"in {result.duration_seconds:.1f}s")
        return result
