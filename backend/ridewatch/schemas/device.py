"""Device registration schemas for API."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DeviceRegisterRequest(BaseModel):
    """Request to register a device for push notifications."""
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    platform: Optional[str] = None
    device_name: Optional[str] = Field(None, alias="deviceName")


class DeviceRegisterResponse(BaseModel):
    """Response after registering a device."""
    success: bool
    message: str


class DeviceUnregisterResponse(BaseModel):
    """Response after unregistering a device."""
    success: bool
    message: str


class DeviceSummary(BaseModel):
    token: str  # Truncated
    platform: Optional[str] = None
    device_name: Optional[str] = None
    registered_at: Optional[str] = None


class DeviceListResponse(BaseModel):
    count: int
    devices: List[DeviceSummary]
