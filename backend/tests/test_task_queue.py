"""Tests for the APScheduler-backed delayed task queue."""
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ridewatch.services.task_queue import BACKUP_CHECK_JOB_ID, NEXT_CHECK_JOB_ID, TaskQueue


def test_enqueue_adds_replacing_date_job():
    scheduler = MagicMock()
    scheduler.add_job.return_value.id = NEXT_CHECK_JOB_ID
    queue = TaskQueue(scheduler=scheduler)
    fire_at = datetime(2026, 6, 1, 12, 0, 30, tzinfo=timezone.utc)

    job_id = queue.enqueue("https://svc.example.com/check", {"a": 1}, fire_at)

    assert job_id == NEXT_CHECK_JOB_ID
    _, kwargs = scheduler.add_job.call_args
    assert isinstance(kwargs["trigger"], DateTrigger)
    assert kwargs["args"] == ["https://svc.example.com/check", {"a": 1}]
    assert kwargs["id"] == NEXT_CHECK_JOB_ID
    assert kwargs["replace_existing"] is True


def test_enqueue_before_start_raises():
    with pytest.raises(RuntimeError):
        TaskQueue().enqueue("https://svc.example.com/check", None, datetime.now(timezone.utc))


def test_backup_trigger_uses_interval_job():
    scheduler = MagicMock()
    queue = TaskQueue(scheduler=scheduler)

    async def check():
        pass

    queue.add_backup_trigger(check, minutes=15)

    args, kwargs = scheduler.add_job.call_args
    assert args[0] is check
    assert isinstance(kwargs["trigger"], IntervalTrigger)
    assert kwargs["id"] == BACKUP_CHECK_JOB_ID


async def test_deliver_posts_payload():
    received = []

    def handler(request: httpx.Request):
        received.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200)

    queue = TaskQueue(scheduler=MagicMock(), transport=httpx.MockTransport(handler))

    await queue._deliver("https://svc.example.com/check", {"scheduled_for": "x"})

    assert received == [("https://svc.example.com/check", {"scheduled_for": "x"})]


async def test_deliver_swallows_errors():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("down", request=request)

    queue = TaskQueue(scheduler=MagicMock(), transport=httpx.MockTransport(handler))

    await queue._deliver("https://svc.example.com/check", {})
