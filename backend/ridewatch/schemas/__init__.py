"""Pydantic schemas for API request/response models."""
from .check import (
    ChannelCountsResponse,
    NotificationResults,
    StatusChange,
    CheckResponse,
    PushTestRequest,
    PushTestResponse,
)
from .device import (
    DeviceRegisterRequest,
    DeviceRegisterResponse,
    DeviceUnregisterResponse,
    DeviceSummary,
    DeviceListResponse,
)

__all__ = [
    "ChannelCountsResponse",
    "NotificationResults",
    "StatusChange",
    "CheckResponse",
    "PushTestRequest",
    "PushTestResponse",
    "DeviceRegisterRequest",
    "DeviceRegisterResponse",
    "DeviceUnregisterResponse",
    "DeviceSummary",
    "DeviceListResponse",
]
