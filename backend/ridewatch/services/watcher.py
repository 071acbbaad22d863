"""Ride watcher - runs a check cycle: fetch, diff, notify, reschedule."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from .device_cache import DeviceDirectoryCache
from .diff_engine import CheckSummary, DiffEngine
from .notifier import DispatchResult, NotifierService
from .schedule import SchedulePolicy, is_quiet_hours, next_check_delay
from .status_cache import StatusCache
from .task_queue import TaskQueue

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Outcome of one check; failures are reported here, never raised."""
    success: bool
    summary: CheckSummary = field(default_factory=CheckSummary)
    notifications: Optional[DispatchResult] = None
    error: Optional[str] = None


@dataclass
class ScheduleOutcome:
    scheduled: bool
    reason: str
    delay_seconds: Optional[int] = None
    suppressed: bool = False


class RideWatcher:
    """Owns the caches and collaborators for the lifetime of the process."""

    def __init__(
        self,
        park_ids: List[str],
        diff_engine: DiffEngine,
        status_cache: StatusCache,
        device_cache: DeviceDirectoryCache,
        notifier: NotifierService,
        policy: SchedulePolicy,
        task_queue: Optional[TaskQueue] = None,
        dynamic_scheduling: bool = False,
        service_url: Optional[str] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.park_ids = park_ids
        self.diff_engine = diff_engine
        self.status_cache = status_cache
        self.device_cache = device_cache
        self.notifier = notifier
        self.policy = policy
        self.task_queue = task_queue
        self.dynamic_scheduling = dynamic_scheduling
        self.service_url = service_url
        self._now = now

    def is_bedtime(self) -> bool:
        return is_quiet_hours(self._now(), self.policy)

    async def run_check(self) -> CycleResult:
        """Fetch every park, record changes and notify subscribers."""
        await self.status_cache.warm()

        try:
            summary = await self.diff_engine.run(self.park_ids)
        except Exception as e:
            logger.error(f"Error during status check: {e}")
            return CycleResult(success=False, error=str(e))

        if summary.non_operating:
            logger.info(f"Non-operating rides ({len(summary.non_operating)}):")
            for name, status in summary.non_operating:
                logger.info(f"  - {name}: {status}")
        elif summary.checked:
            logger.info("All monitored rides are operating")

        notifications = None
        if summary.events:
            notifications = await self.notifier.dispatch(summary.events)

        return CycleResult(success=True, summary=summary, notifications=notifications)

    async def schedule_next_check(self, down_count: int = 0) -> ScheduleOutcome:
        """Enqueue the next check. Enqueue failures are logged, never raised."""
        if not self.dynamic_scheduling:
            logger.info("Dynamic scheduling disabled, skipping task creation")
            return ScheduleOutcome(scheduled=False, reason="dynamic scheduling disabled")

        if not self.service_url or self.task_queue is None:
            logger.warning("Missing SERVICE_URL, cannot schedule next check")
            return ScheduleOutcome(scheduled=False, reason="missing config")

        now = self._now()
        decision = next_check_delay(now, down_count, self.policy)
        return self._enqueue(now, decision.delay_seconds, decision.reason, decision.suppressed)

    def start_loop(self) -> ScheduleOutcome:
        """Kick off self-scheduling with a check one second from now."""
        if not self.service_url or self.task_queue is None:
            logger.warning("Missing SERVICE_URL, cannot start scheduling loop")
            return ScheduleOutcome(scheduled=False, reason="missing config")
        return self._enqueue(self._now(), 1, "start", False)

    def _enqueue(self, now: datetime, delay: int, reason: str, suppressed: bool) -> ScheduleOutcome:
        fire_at = now + timedelta(seconds=delay)
        try:
            job_id = self.task_queue.enqueue(
                f"{self.service_url.rstrip('/')}/check",
                {"scheduled_for": fire_at.isoformat()},
                fire_at,
            )
        except Exception as e:
            logger.error(f"Failed to schedule next check: {e}")
            return ScheduleOutcome(scheduled=False, reason=str(e))

        logger.info(f"Scheduled next check in {delay}s ({reason}): {job_id}")
        return ScheduleOutcome(
            scheduled=True,
            reason=reason,
            delay_seconds=delay,
            suppressed=suppressed,
        )

    async def handle_check(self, schedule: bool = True) -> tuple[CycleResult, Optional[ScheduleOutcome], bool]:
        """Run a check the way a scheduled invocation does.

        During bedtime the fetch is skipped and only the wake-up check is
        scheduled. Returns (result, schedule outcome, skipped for bedtime).
        """
        if schedule and self.is_bedtime():
            logger.info(
                f"Bedtime mode active ({self.policy.bedtime_start}:00 - "
                f"{self.policy.bedtime_end}:00 {self.policy.timezone})"
            )
            outcome = await self.schedule_next_check(0)
            return CycleResult(success=True), outcome, True

        logger.info("Starting ride status check...")
        result = await self.run_check()

        summary = result.summary
        if result.success:
            logger.info(
                f"Check complete: {summary.checked} rides, {summary.changes_detected} changes, "
                f"{summary.durable_writes} writes"
            )

        outcome = None
        if schedule:
            outcome = await self.schedule_next_check(summary.non_operating_count)
        return result, outcome, False

    async def run_backup_check(self):
        """Entry point for the interval backup trigger."""
        await self.handle_check(schedule=True)

    def cache_stats(self) -> dict:
        return {
            "status_cache": {
                "size": self.status_cache.size,
                "initialized": self.status_cache.initialized,
            },
            "device_cache": self.device_cache.stats(),
        }
