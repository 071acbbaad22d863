"""API routers."""
from .check import router as check_router
from .devices import router as devices_router

__all__ = ["check_router", "devices_router"]
