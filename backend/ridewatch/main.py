"""Main FastAPI application for the ride status watcher."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker

from .config import Settings, settings
from .database import async_session, init_db, close_db
from .routers import check_router, devices_router
from .services.clock import utcnow
from .services.device_cache import DeviceDirectoryCache
from .services.diff_engine import DiffEngine
from .services.live_data import LiveDataClient
from .services.notifier import NotifierService
from .services.push_sender import PushConfig, PushSenderService
from .services.schedule import SchedulePolicy
from .services.sms_sender import SmsConfig, SmsSenderService
from .services.status_cache import StatusCache
from .services.stores import DeviceStore, RideStatusStore
from .services.task_queue import TaskQueue
from .services.watcher import RideWatcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_watcher(
    config: Settings,
    session_factory: async_sessionmaker,
    task_queue: TaskQueue | None = None,
) -> RideWatcher:
    """Wire up the caches and services used for the life of the process."""
    status_store = RideStatusStore(session_factory)
    status_cache = StatusCache(status_store)
    device_cache = DeviceDirectoryCache(DeviceStore(session_factory), ttl=config.device_cache_ttl_seconds)

    push_sender = PushSenderService()
    push_sender.configure(PushConfig.from_settings(config))

    notifier = NotifierService(
        device_cache=device_cache,
        push_sender=push_sender,
        sms_sender=SmsSenderService(SmsConfig.from_settings(config)),
    )

    diff_engine = DiffEngine(
        live_data=LiveDataClient(config.live_data_base_url, timeout=config.live_data_timeout_seconds),
        cache=status_cache,
        store=status_store,
        watched_rides=config.watched_ride_list,
    )

    return RideWatcher(
        park_ids=config.park_id_list,
        diff_engine=diff_engine,
        status_cache=status_cache,
        device_cache=device_cache,
        notifier=notifier,
        policy=SchedulePolicy.from_settings(config),
        task_queue=task_queue,
        dynamic_scheduling=config.dynamic_scheduling,
        service_url=config.service_url,
    )


def _log_startup(watcher: RideWatcher):
    policy = watcher.policy
    logger.info(f"Monitoring {len(settings.park_id_list)} park(s)")
    logger.info(f"Watching {len(settings.watched_ride_list) or 'all'} ride(s)")
    logger.info(f"Push notifications: {'enabled' if watcher.notifier.push_sender.enabled else 'disabled'}")
    logger.info(f"Check interval: {policy.normal_interval}s")
    if policy.alert_mode_enabled:
        logger.info(f"Alert mode: {policy.alert_interval}s while rides are down")
    logger.info(f"Dynamic scheduling: {'enabled' if settings.dynamic_scheduling else 'disabled'}")
    if policy.bedtime_enabled:
        logger.info(f"Bedtime: {policy.bedtime_start}:00 - {policy.bedtime_end}:00 {policy.timezone}")
    else:
        logger.info("Bedtime: disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting ride-watch")

    await init_db()
    logger.info("Database initialized")

    task_queue = TaskQueue()
    task_queue.start()

    watcher = create_watcher(settings, async_session, task_queue)
    await watcher.status_cache.warm()
    app.state.watcher = watcher

    if settings.backup_check_minutes > 0:
        task_queue.add_backup_trigger(watcher.run_backup_check, settings.backup_check_minutes)

    _log_startup(watcher)

    yield

    # Shutdown
    task_queue.stop()
    await close_db()
    logger.info("Shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="ride-watch",
        description="Theme park attraction status monitor",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.include_router(check_router)
    app.include_router(devices_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": utcnow().isoformat(),
        }

    @app.get("/")
    async def service_info():
        watcher: RideWatcher | None = getattr(app.state, "watcher", None)
        info = {
            "name": "ride-watch",
            "description": "Theme park attraction status monitor",
            "endpoints": {
                "/health": "Health check",
                "/check": "Trigger status check (POST auto-schedules next, GET does not)",
                "/start": "Start the scheduling loop (POST)",
                "/devices": "Register (POST), unregister (DELETE), or list (GET) devices",
                "/test-push": "Send a test notification (POST)",
                "/cache": "View cache stats",
            },
        }
        if watcher is None:
            return info

        policy = watcher.policy
        info["config"] = {
            "parks_monitored": len(watcher.park_ids),
            "watched_rides": len(watcher.diff_engine.watched_rides) or "all",
            "push_enabled": watcher.notifier.push_sender.enabled,
            "dynamic_scheduling": watcher.dynamic_scheduling,
            "check_interval_sec": policy.normal_interval,
            "alert_mode_enabled": policy.alert_mode_enabled,
            "alert_interval_sec": policy.alert_interval,
        }
        info["bedtime"] = {
            "enabled": policy.bedtime_enabled,
            "start": f"{policy.bedtime_start}:00",
            "end": f"{policy.bedtime_end}:00",
            "timezone": policy.timezone,
            "currently_active": watcher.is_bedtime(),
        }
        info["cache"] = watcher.cache_stats()
        return info

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
