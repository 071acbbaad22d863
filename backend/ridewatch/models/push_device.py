"""PushDevice model - stores device tokens for push notifications."""
from datetime import datetime
from sqlalchemy import Boolean, Column, String, DateTime

from ..database import Base


class PushDevice(Base):
    """Registered device for push notifications.

    Devices are never deleted; unregistering or an invalid-token response
    from the push provider only clears ``active``.
    """

    __tablename__ = "push_devices"

    token = Column(String, primary_key=True)
    platform = Column(String, default="ios")  # ios, android
    device_name = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    invalid = Column(Boolean, default=False, nullable=False)
    deactivation_reason = Column(String, nullable=True)  # unregistered, invalid
    registered_at = Column(DateTime, default=datetime.utcnow)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    unregistered_at = Column(DateTime, nullable=True)
    invalidated_at = Column(DateTime, nullable=True)
