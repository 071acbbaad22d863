"""Check cycle API endpoints."""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..dependencies import get_watcher
from ..schemas.check import (
    ChannelCountsResponse,
    CheckResponse,
    NotificationResults,
    PushTestRequest,
    PushTestResponse,
    StatusChange,
)
from ..services.notifier import DispatchResult
from ..services.watcher import CycleResult, RideWatcher, ScheduleOutcome

logger = logging.getLogger(__name__)

router = APIRouter(tags=["check"])


def _notification_results(result: Optional[DispatchResult]) -> Optional[NotificationResults]:
    if result is None:
        return None
    return NotificationResults(
        notifications=result.notifications,
        push=ChannelCountsResponse(sent=result.push.sent, failed=result.push.failed),
        sms=ChannelCountsResponse(sent=result.sms.sent, failed=result.sms.failed),
    )


def _build_check_response(
    watcher: RideWatcher,
    result: CycleResult,
    outcome: Optional[ScheduleOutcome],
    bedtime: bool,
    started: float,
) -> CheckResponse:
    summary = result.summary
    policy = watcher.policy

    if outcome and outcome.delay_seconds is not None:
        next_check_sec = outcome.delay_seconds
    else:
        next_check_sec = policy.normal_interval

    message = None
    if bedtime:
        message = f"Skipping check - bedtime mode ({policy.bedtime_start}:00 - {policy.bedtime_end}:00)"
    elif outcome is None:
        message = "GET request - next check not auto-scheduled"

    return CheckResponse(
        success=result.success,
        bedtime=bedtime,
        message=message,
        rides_checked=summary.checked,
        status_changes=summary.changes_detected,
        rides_down=summary.non_operating_count,
        durable_writes=summary.durable_writes,
        failed_writes=summary.failed_writes,
        failed_parks=summary.failed_parks,
        changes=[
            StatusChange(
                ride_id=e.entity_id,
                ride_name=e.entity_name,
                old_status=e.old_status,
                new_status=e.new_status,
            )
            for e in summary.events
        ],
        cache_size=watcher.status_cache.size,
        notifications=_notification_results(result.notifications),
        next_check_sec=next_check_sec,
        schedule_reason=outcome.reason if outcome else None,
        duration_ms=int((time.monotonic() - started) * 1000),
        error=result.error,
    )


async def _check(watcher: RideWatcher, schedule: bool):
    started = time.monotonic()
    result, outcome, bedtime = await watcher.handle_check(schedule=schedule)
    response = _build_check_response(watcher, result, outcome, bedtime, started)

    if not result.success:
        return JSONResponse(status_code=500, content=response.model_dump())
    return response


@router.post("/check", response_model=CheckResponse)
async def run_check(watcher: RideWatcher = Depends(get_watcher)):
    """Run a status check and schedule the next one (skipped during bedtime)."""
    return await _check(watcher, schedule=True)


@router.get("/check", response_model=CheckResponse)
async def run_check_once(watcher: RideWatcher = Depends(get_watcher)):
    """Run a status check without scheduling another."""
    return await _check(watcher, schedule=False)


@router.post("/start")
async def start_loop(watcher: RideWatcher = Depends(get_watcher)):
    """Start the self-scheduling loop."""
    logger.info("Starting scheduling loop...")
    outcome = watcher.start_loop()
    if not outcome.scheduled:
        raise HTTPException(status_code=500, detail=f"Could not start scheduling loop: {outcome.reason}")
    return {"success": True, "message": "Scheduling loop started"}


@router.post("/test-push", response_model=PushTestResponse)
async def test_push(
    request: Optional[PushTestRequest] = None,
    watcher: RideWatcher = Depends(get_watcher),
):
    """Send a test notification through every configured channel."""
    request = request or PushTestRequest()
    try:
        result = await watcher.notifier.send_test(
            request.title or "Test Notification",
            request.body or "This is a test push notification from ride-watch",
        )
    except Exception as e:
        logger.error(f"Error sending test push: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return PushTestResponse(success=True, result=_notification_results(result))


@router.get("/cache")
async def cache_stats(watcher: RideWatcher = Depends(get_watcher)):
    """Status and device cache statistics."""
    return watcher.cache_stats()
