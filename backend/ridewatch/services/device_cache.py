"""TTL cache of active push devices.

All device mutations go through this class so every change drops the
cached list before the next notification goes out.
"""
import logging
import time
from typing import Callable, List, Optional

from .stores import DeviceStore, DeviceTarget

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


class DeviceDirectoryCache:
    """Serves the active device list from memory for up to ``ttl`` seconds."""

    def __init__(
        self,
        store: DeviceStore,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self.ttl = ttl
        self._clock = clock
        self._targets: List[DeviceTarget] = []
        self._loaded_at: Optional[float] = None

    @property
    def age(self) -> Optional[float]:
        if self._loaded_at is None:
            return None
        return self._clock() - self._loaded_at

    async def get_active_targets(self) -> List[DeviceTarget]:
        """Return active devices, re-reading the store when stale or empty."""
        age = self.age
        if self._targets and age is not None and age < self.ttl:
            return self._targets

        logger.info("Refreshing device tokens from database...")
        self._targets = await self._store.list_active()
        self._loaded_at = self._clock()
        logger.info(f"Device cache refreshed: {len(self._targets)} active device(s)")
        return self._targets

    def invalidate(self):
        self._loaded_at = None

    async def register(
        self,
        token: str,
        platform: Optional[str] = None,
        device_name: Optional[str] = None,
    ) -> DeviceTarget:
        device = await self._store.upsert(token, platform=platform, device_name=device_name)
        self.invalidate()
        return device

    async def unregister(self, token: str) -> bool:
        found = await self._store.deactivate(token, reason="unregistered")
        self.invalidate()
        return found

    async def mark_invalid(self, token: str) -> bool:
        logger.info(f"Marking invalid token: {token[:20]}...")
        found = await self._store.deactivate(token, reason="invalid")
        self.invalidate()
        return found

    def stats(self) -> dict:
        age = self.age
        return {
            "count": len(self._targets),
            "age_seconds": round(age, 1) if age is not None else None,
            "ttl_seconds": self.ttl,
        }
