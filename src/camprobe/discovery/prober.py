"""
Single-interface probe/collect cycle
"""

import asyncio
import logging
import time
import uuid
from typing import Dict, Optional

from .constants import WS_MULTICAST_ADDRESS, WS_MULTICAST_PORT
from .models import InterfaceResult, ProbeOutcome, RawResponse
from .probe_builder import build_probe
from .response_parser import process_responses

logger = logging.getLogger(__name__)


class InterfaceProber:
    """
    Drives one endpoint through send probe, collect replies, close.

    The endpoint is owned for the whole cycle and always closed on exit.
    Collection ends when the absolute deadline passes (replies are kept), when
    the cancel event fires (replies are discarded) or when the endpoint stops
    delivering traffic.
    """

    def __init__(self, endpoint):
        self.endpoint = endpoint
        self.interface = getattr(endpoint, 'interface', repr(endpoint))

    async def run(self, message_id: uuid.UUID, timeout: float,
                  cancel_event: Optional[asyncio.Event] = None) -> InterfaceResult:
        cancel_event = cancel_event or asyncio.Event()
        start_time = time.time()
        responses: Dict[str, RawResponse] = {}

        try:
            await self.endpoint.open()
            await self.endpoint.send(build_probe(message_id), (WS_MULTICAST_ADDRESS, WS_MULTICAST_PORT))
            logger.debug(f"Probe {message_id} sent on {self.interface}")
            outcome = await self._collect(responses, timeout, cancel_event)
        finally:
            self.endpoint.close()

        duration = time.time() - start_time
        if cancel_event.is_set():
            logger.info(f"Discovery on {self.interface} cancelled, discarding {len(responses)} response(s)")
            return InterfaceResult(self.interface, ProbeOutcome.CANCELLED, [], len(responses), duration)

        devices = process_responses(responses.values(), message_id)
        logger.info(f"Discovery on {self.interface}: {len(devices)} device(s) from "
                    f"{len(responses)} response(s) in {duration:.1f}s ({outcome.value})")
        return InterfaceResult(self.interface, outcome, devices, len(responses), duration)

    async def _collect(self, responses: Dict[str, RawResponse], timeout: float,
                       cancel_event: asyncio.Event) -> ProbeOutcome:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            if cancel_event.is_set():
                return ProbeOutcome.CANCELLED
            remaining = deadline - loop.time()
            if remaining <= 0:
                return ProbeOutcome.TIMED_OUT

            receive = asyncio.ensure_future(self.endpoint.receive())
            cancelled = asyncio.ensure_future(cancel_event.wait())
            try:
                done, _ = await asyncio.wait(
                    {receive, cancelled},
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                for task in (receive, cancelled):
                    if not task.done():
                        task.cancel()
                await asyncio.gather(receive, cancelled, return_exceptions=True)

            if receive not in done:
                continue

            response = receive.result()
            if response is None:
                return ProbeOutcome.NO_MORE_TRAFFIC
            if response.host not in responses:
                responses[response.host] = response
