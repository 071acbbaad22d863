"""Database models."""
from .ride_status import RideStatus
from .push_device import PushDevice

__all__ = ["RideStatus", "PushDevice"]
