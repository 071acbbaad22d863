"""Device registration API endpoints for push notifications."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_watcher
from ..schemas.device import (
    DeviceListResponse,
    DeviceRegisterRequest,
    DeviceRegisterResponse,
    DeviceSummary,
    DeviceUnregisterResponse,
)
from ..services.watcher import RideWatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("", response_model=DeviceRegisterResponse)
async def register_device(
    request: DeviceRegisterRequest,
    watcher: RideWatcher = Depends(get_watcher),
):
    """Register a device for push notifications.

    Existing devices are merged: fields left out of the request keep their
    stored values. The app should call this on every launch.
    """
    if not request.token:
        raise HTTPException(status_code=400, detail="Token is required")

    try:
        device = await watcher.device_cache.register(
            request.token,
            platform=request.platform,
            device_name=request.device_name,
        )
    except Exception as e:
        logger.error(f"Error registering device: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"Device registered: {request.token[:20]}... ({device.platform})")
    return DeviceRegisterResponse(
        success=True,
        message="Device registered for push notifications",
    )


@router.delete("/{token}", response_model=DeviceUnregisterResponse)
async def unregister_device(
    token: str,
    watcher: RideWatcher = Depends(get_watcher),
):
    """Unregister a device from push notifications.

    This doesn't delete the record but marks it as inactive.
    """
    try:
        found = await watcher.device_cache.unregister(token)
    except Exception as e:
        logger.error(f"Error unregistering device: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if not found:
        raise HTTPException(status_code=404, detail="Device not found")

    logger.info(f"Device unregistered: {token[:20]}...")
    return DeviceUnregisterResponse(success=True, message="Device unregistered")


@router.get("", response_model=DeviceListResponse)
async def list_devices(watcher: RideWatcher = Depends(get_watcher)):
    """List active devices with truncated tokens."""
    try:
        devices = await watcher.device_cache.get_active_targets()
    except Exception as e:
        logger.error(f"Error listing devices: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return DeviceListResponse(
        count=len(devices),
        devices=[
            DeviceSummary(
                token=f"{d.token[:20]}...",
                platform=d.platform,
                device_name=d.device_name,
                registered_at=d.registered_at.isoformat() if d.registered_at else None,
            )
            for d in devices
        ],
    )
