"""In-memory cache of the last known status per ride.

The cache is the freshest writer: every observation updates it, while the
durable store is only written when a status actually changes. It is warmed
from the store once per process so restarts don't re-announce every ride.
"""
import logging
from typing import Dict, Optional

from .clock import utcnow_naive
from .stores import EntityStatusRecord, RideStatusStore

logger = logging.getLogger(__name__)


class StatusCache:
    """Ride id -> last known status, warmed lazily from the durable store."""

    def __init__(self, store: RideStatusStore):
        self._store = store
        self._entries: Dict[str, EntityStatusRecord] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def size(self) -> int:
        return len(self._entries)

    async def warm(self):
        """Load all stored statuses. Runs once; failures leave the cache empty."""
        if self._initialized:
            return

        logger.info("Initializing status cache from database...")
        try:
            self._entries.update(await self._store.load_all())
            logger.info(f"Status cache initialized with {len(self._entries)} rides")
        except Exception as e:
            # Continue without cache - it fills up as rides are observed
            logger.error(f"Failed to initialize status cache: {e}")
        self._initialized = True

    def get(self, entity_id: str) -> Optional[EntityStatusRecord]:
        return self._entries.get(entity_id)

    def put(self, entity_id: str, status: str, name: str) -> bool:
        """Record an observation.

        Returns True when the ride is new or its status differs from the
        cached one, i.e. when the caller must persist the record.
        """
        previous = self._entries.get(entity_id)
        changed = previous is None or previous.status != status

        self._entries[entity_id] = EntityStatusRecord(
            id=entity_id,
            name=name,
            status=status,
            updated_at=utcnow_naive(),
        )
        return changed

    def restore(self, entity_id: str, previous: Optional[EntityStatusRecord]):
        """Put back the entry that was cached before a failed persist."""
        if previous is None:
            self._entries.pop(entity_id, None)
        else:
            self._entries[entity_id] = previous
