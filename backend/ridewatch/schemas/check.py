"""Check cycle schemas for API."""
from typing import List, Optional
from pydantic import BaseModel


class ChannelCountsResponse(BaseModel):
    sent: int = 0
    failed: int = 0


class NotificationResults(BaseModel):
    """Delivery counts per channel."""
    notifications: int = 0
    push: ChannelCountsResponse
    sms: ChannelCountsResponse


class StatusChange(BaseModel):
    ride_id: str
    ride_name: str
    old_status: str
    new_status: str


class CheckResponse(BaseModel):
    """Result of a check request."""
    success: bool
    bedtime: bool = False
    message: Optional[str] = None
    rides_checked: int = 0
    status_changes: int = 0
    rides_down: int = 0
    durable_writes: int = 0
    failed_writes: int = 0
    failed_parks: List[str] = []
    changes: List[StatusChange] = []
    cache_size: int = 0
    notifications: Optional[NotificationResults] = None
    next_check_sec: Optional[int] = None
    schedule_reason: Optional[str] = None
    duration_ms: int = 0
    error: Optional[str] = None


class PushTestRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class PushTestResponse(BaseModel):
    success: bool
    result: NotificationResults
