"""Services for polling, change detection, scheduling, and notifications."""
from .status_cache import StatusCache
from .device_cache import DeviceDirectoryCache
from .diff_engine import DiffEngine
from .notifier import NotifierService
from .task_queue import TaskQueue
from .watcher import RideWatcher

__all__ = ["StatusCache", "DeviceDirectoryCache", "DiffEngine", "NotifierService", "TaskQueue", "RideWatcher"]
