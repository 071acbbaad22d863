"""Delayed task queue - fires the next check at a computed time.

Each enqueued task is an APScheduler date job that POSTs to a callback URL,
so a check re-invokes the service the same way an external trigger would.
An optional interval job acts as the coarse backup trigger.
"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

NEXT_CHECK_JOB_ID = "next_check"
BACKUP_CHECK_JOB_ID = "backup_check"


class TaskQueue:
    """APScheduler-backed delayed HTTP callbacks."""

    def __init__(
        self,
        scheduler: Optional[AsyncIOScheduler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.scheduler = scheduler
        self._transport = transport
        self.timeout = timeout
        self._running = False

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler()
        self.scheduler.start()
        self._running = True
        logger.info("Task queue started")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Task queue stopped")

    def enqueue(self, callback_url: str, payload: Optional[dict], fire_at: datetime) -> str:
        """Schedule a POST to ``callback_url`` at ``fire_at``.

        A pending next-check task is replaced rather than duplicated.
        Returns the job id.
        """
        if self.scheduler is None:
            raise RuntimeError("Task queue is not started")

        job = self.scheduler.add_job(
            self._deliver,
            trigger=DateTrigger(run_date=fire_at),
            args=[callback_url, payload or {}],
            id=NEXT_CHECK_JOB_ID,
            replace_existing=True,
            misfire_grace_time=None,
        )
        return job.id

    def add_backup_trigger(self, func: Callable[[], Awaitable], minutes: int):
        """Run ``func`` every ``minutes`` as a safety net for missed self-schedules."""
        if self.scheduler is None:
            raise RuntimeError("Task queue is not started")

        self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(minutes=minutes),
            id=BACKUP_CHECK_JOB_ID,
            replace_existing=True,
            max_instances=1,
        )
        logger.info(f"Backup check trigger every {minutes} minute(s)")

    async def _deliver(self, callback_url: str, payload: dict):
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(callback_url, json=payload)
            if response.status_code >= 400:
                logger.warning(f"Scheduled callback {callback_url} returned {response.status_code}")
        except Exception as e:
            logger.error(f"Scheduled callback {callback_url} failed: {e}")
