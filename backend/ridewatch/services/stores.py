"""Durable stores for ride statuses and push devices."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..models import PushDevice, RideStatus
from ..utils.db_utils import retry_on_lock
from .clock import utcnow_naive

logger = logging.getLogger(__name__)


@dataclass
class EntityStatusRecord:
    """Last known status of a monitored ride."""
    id: str
    name: str
    status: str
    updated_at: datetime


@dataclass
class DeviceTarget:
    """A push notification destination."""
    token: str
    platform: str = "ios"
    device_name: Optional[str] = None
    active: bool = True
    invalid: bool = False
    registered_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


def _to_target(device: PushDevice) -> DeviceTarget:
    return DeviceTarget(
        token=device.token,
        platform=device.platform or "ios",
        device_name=device.device_name,
        active=bool(device.active),
        invalid=bool(device.invalid),
        registered_at=device.registered_at,
        last_updated=device.last_updated,
    )


class RideStatusStore:
    """Persists the latest status of each ride."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def load_all(self) -> Dict[str, EntityStatusRecord]:
        """Read every stored ride status, keyed by ride id."""
        async with self._session_factory() as session:
            result = await session.execute(select(RideStatus))
            rows = result.scalars().all()

        return {
            row.entity_id: EntityStatusRecord(
                id=row.entity_id,
                name=row.name,
                status=row.status,
                updated_at=row.updated_at,
            )
            for row in rows
        }

    async def save(self, record: EntityStatusRecord):
        """Insert or overwrite the stored status for one ride."""
        async with self._session_factory() as session:
            await session.merge(RideStatus(
                entity_id=record.id,
                name=record.name,
                status=record.status,
                updated_at=record.updated_at,
            ))
            await retry_on_lock(session.commit)


class DeviceStore:
    """Persists push devices. Records are soft-deleted only."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def list_active(self) -> List[DeviceTarget]:
        """All devices that should currently receive notifications."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PushDevice)
                .where(PushDevice.active.is_(True))
                .order_by(PushDevice.registered_at)
            )
            return [_to_target(device) for device in result.scalars().all()]

    async def upsert(self, token: str, **fields) -> DeviceTarget:
        """Register a device, merging into any existing record.

        Fields passed as None are ignored so they never overwrite
        previously stored values.
        """
        updates = {key: value for key, value in fields.items() if value is not None}
        now = utcnow_naive()

        async with self._session_factory() as session:
            device = await session.get(PushDevice, token)
            if device is None:
                device = PushDevice(
                    token=token,
                    platform="ios",
                    invalid=False,
                    registered_at=now,
                )
                session.add(device)

            for key, value in updates.items():
                setattr(device, key, value)
            device.active = True
            device.deactivation_reason = None
            device.last_updated = now

            await retry_on_lock(session.commit)
            return _to_target(device)

    async def deactivate(self, token: str, reason: str) -> bool:
        """Soft-delete a device.

        ``reason`` is "unregistered" for an explicit request or "invalid"
        when the push provider rejected the token. Returns False when the
        token is unknown.
        """
        now = utcnow_naive()

        async with self._session_factory() as session:
            device = await session.get(PushDevice, token)
            if device is None:
                return False

            device.active = False
            device.deactivation_reason = reason
            device.last_updated = now
            if reason == "invalid":
                device.invalid = True
                device.invalidated_at = now
            else:
                device.unregistered_at = now

            await retry_on_lock(session.commit)
            return True
