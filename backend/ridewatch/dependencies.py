"""FastAPI dependencies."""
from fastapi import HTTPException, Request

from .services.watcher import RideWatcher


def get_watcher(request: Request) -> RideWatcher:
    """The process-wide watcher built during application startup."""
    watcher = getattr(request.app.state, "watcher", None)
    if watcher is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return watcher
