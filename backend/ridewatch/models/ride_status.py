"""RideStatus model - last known status per ride."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime

from ..database import Base


class RideStatus(Base):
    """Most recent status seen for a ride.

    One row per ride, written only when the status changes.
    """

    __tablename__ = "ride_status"

    entity_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    status = Column(String, nullable=False)  # OPERATING, DOWN, CLOSED, REFURBISHMENT, ...
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
