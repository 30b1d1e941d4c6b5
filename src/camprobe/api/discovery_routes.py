"""
Discovery API routes
"""

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel
from typing import List, Optional, Dict, Any
from datetime import datetime
import logging

from ..discovery.models import DiscoveredDevice
from ..discovery_command_handler import DiscoveryCommandHandler, DiscoveryInProgressError

logger = logging.getLogger(__name__)

# Response models
class DeviceResponse(BaseModel):
    address: str
    model: Optional[str]
    manufacturer: str
    xaddrs: List[str]
    types: List[str]

class InterfaceSummary(BaseModel):
    interface: str
    outcome: str
    devices_found: int
    responses_received: int
    duration_seconds: float
    error: Optional[str] = None

class DiscoveryRunResponse(BaseModel):
    command_id: str
    status: str
    started_at: datetime
    execution_time_seconds: float
    devices: List[DeviceResponse]
    interfaces: List[InterfaceSummary]
    error: Optional[Dict[str, Any]] = None

class DiscoveryStatusResponse(BaseModel):
    command_id: Optional[str]
    status: str
    started_at: Optional[datetime]
    execution_time_seconds: float
    devices_found: Optional[int]
    error: Optional[Dict[str, Any]] = None

def _device_response(device: DiscoveredDevice) -> DeviceResponse:
    return DeviceResponse(
        address=device.address,
        model=device.model,
        manufacturer=device.manufacturer,
        xaddrs=list(device.xaddrs),
        types=list(device.types)
    )

def create_discovery_routes(handler: DiscoveryCommandHandler):
    """Create discovery control routes"""
    router = APIRouter(prefix="/api/discovery", tags=["discovery"])

    @router.post("/run", response_model=DiscoveryRunResponse)
    async def run_discovery(timeout: Optional[float] = Query(None, gt=0, allow_inf_nan=False, description="Collection window in seconds")):
        """Probe all interfaces and return the devices that answered"""
        try:
            result = await handler.execute_discovery_command(timeout)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except DiscoveryInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))

        return DiscoveryRunResponse(
            command_id=result.command_id,
            status=result.status.value,
            started_at=result.started_at,
            execution_time_seconds=result.execution_time_seconds,
            devices=[_device_response(d) for d in result.devices],
            interfaces=[InterfaceSummary(**i) for i in result.interfaces],
            error=result.error
        )

    @router.post("/cancel")
    async def cancel_discovery():
        """Cancel the running discovery"""
        if not handler.cancel_discovery():
            raise HTTPException(status_code=404, detail="No discovery in progress")
        return {"message": "Discovery cancellation requested"}

    @router.get("/status", response_model=DiscoveryStatusResponse)
    async def get_discovery_status():
        """Status of the running or last discovery"""
        return DiscoveryStatusResponse(**handler.get_status())

    @router.get("/devices", response_model=List[DeviceResponse])
    async def get_devices():
        """Devices found by the last completed discovery"""
        return [_device_response(d) for d in handler.last_devices]

    return router
