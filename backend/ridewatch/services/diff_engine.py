"""Diff engine - turns live park data into ride status change events."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .live_data import LiveDataClient, LiveDataError
from .status_cache import StatusCache
from .stores import RideStatusStore

logger = logging.getLogger(__name__)

MONITORED_ENTITY_TYPE = "ATTRACTION"
DEFAULT_STATUS = "UNKNOWN"


class StatusKind(str, Enum):
    """Known provider statuses, plus a bucket for anything else."""
    OPERATING = "OPERATING"
    DOWN = "DOWN"
    CLOSED = "CLOSED"
    REFURBISHMENT = "REFURBISHMENT"
    UNRECOGNIZED = "UNRECOGNIZED"

    @classmethod
    def classify(cls, status: Optional[str]) -> "StatusKind":
        try:
            kind = cls(status)
        except ValueError:
            return cls.UNRECOGNIZED
        return kind

    @property
    def non_operating(self) -> bool:
        return self in NON_OPERATING


NON_OPERATING = frozenset({StatusKind.DOWN, StatusKind.REFURBISHMENT, StatusKind.CLOSED})


class CheckCycleError(Exception):
    """The check produced no usable data at all."""


@dataclass
class StatusChangeEvent:
    """A ride moved from one status to another."""
    entity_id: str
    entity_name: str
    old_status: str
    new_status: str


@dataclass
class CheckSummary:
    """Outcome of diffing one round of live data."""
    checked: int = 0
    changes_detected: int = 0
    non_operating_count: int = 0
    durable_writes: int = 0
    failed_writes: int = 0
    failed_parks: List[str] = field(default_factory=list)
    events: List[StatusChangeEvent] = field(default_factory=list)
    non_operating: List[Tuple[str, str]] = field(default_factory=list)


def should_monitor_ride(name: str, watched: List[str]) -> bool:
    """Case-insensitive substring match against the watched list; empty watches all."""
    if not watched:
        return True
    lowered = name.lower()
    return any(w.strip().lower() in lowered for w in watched)


class DiffEngine:
    """Compares live observations against the status cache."""

    def __init__(
        self,
        live_data: LiveDataClient,
        cache: StatusCache,
        store: RideStatusStore,
        watched_rides: Optional[List[str]] = None,
    ):
        self.live_data = live_data
        self.cache = cache
        self.store = store
        self.watched_rides = watched_rides or []

    async def run(self, park_ids: List[str]) -> CheckSummary:
        """Fetch every park and diff its attractions.

        Parks that fail to load or diff are logged and skipped, keeping the
        events already collected. Raises CheckCycleError only when every
        configured park failed before any ride was checked.
        """
        summary = CheckSummary()

        if not park_ids:
            logger.warning("No park IDs configured")
            return summary

        for park_id in park_ids:
            try:
                entities = await self.live_data.fetch_park(park_id)
            except LiveDataError as e:
                logger.error(f"Error processing park {park_id}: {e}")
                summary.failed_parks.append(park_id)
                continue

            try:
                await self._diff_park(park_id, entities, summary)
            except Exception as e:
                logger.error(f"Error diffing park {park_id}: {e}")
                summary.failed_parks.append(park_id)

        if len(summary.failed_parks) == len(park_ids) and not summary.checked:
            raise CheckCycleError(f"Failed to process all {len(park_ids)} park(s)")

        return summary

    async def _diff_park(self, park_id: str, entities: List[dict], summary: CheckSummary):
        attractions = [
            e for e in entities
            if isinstance(e, dict) and e.get("entityType") == MONITORED_ENTITY_TYPE
        ]
        logger.info(f"Found {len(attractions)} attractions in park {park_id}")

        for attraction in attractions:
            ride_id = attraction.get("id")
            ride_name = attraction.get("name") or ""
            current_status = attraction.get("status") or DEFAULT_STATUS

            if not ride_id or not should_monitor_ride(ride_name, self.watched_rides):
                continue

            summary.checked += 1

            if StatusKind.classify(current_status).non_operating:
                summary.non_operating_count += 1
                summary.non_operating.append((ride_name, current_status))

            previous = self.cache.get(ride_id)
            if not self.cache.put(ride_id, current_status, ride_name):
                continue

            try:
                await self.store.save(self.cache.get(ride_id))
            except Exception as e:
                # Roll back so the change is detected again next cycle
                logger.error(f"Failed to persist status for {ride_name}: {e}")
                self.cache.restore(ride_id, previous)
                summary.failed_writes += 1
                continue
            summary.durable_writes += 1

            if previous is not None:
                logger.info(f"Status change detected: {ride_name} ({previous.status} → {current_status})")
                summary.changes_detected += 1
                summary.events.append(StatusChangeEvent(
                    entity_id=ride_id,
                    entity_name=ride_name,
                    old_status=previous.status,
                    new_status=current_status,
                ))
