"""Shared fakes and fixtures."""
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from ridewatch.services.device_cache import DeviceDirectoryCache
from ridewatch.services.diff_engine import DiffEngine
from ridewatch.services.live_data import LiveDataError
from ridewatch.services.notifier import NotifierService
from ridewatch.services.push_sender import PushResult
from ridewatch.services.schedule import SchedulePolicy
from ridewatch.services.status_cache import StatusCache
from ridewatch.services.stores import DeviceTarget, EntityStatusRecord
from ridewatch.services.watcher import RideWatcher


def ride(ride_id: str, name: str, status: Optional[str] = "OPERATING", entity_type: str = "ATTRACTION") -> dict:
    entity = {"id": ride_id, "name": name, "entityType": entity_type}
    if status is not None:
        entity["status"] = status
    return entity


def record(ride_id: str, name: str, status: str) -> EntityStatusRecord:
    return EntityStatusRecord(id=ride_id, name=name, status=status, updated_at=datetime(2026, 1, 1))


class FakeStatusStore:
    def __init__(
        self,
        records: Optional[Dict[str, EntityStatusRecord]] = None,
        fail_load: bool = False,
        fail_save: Optional[set] = None,
    ):
        self.records = dict(records or {})
        self.fail_load = fail_load
        self.fail_save = set(fail_save or ())
        self.loads = 0
        self.saved: List[EntityStatusRecord] = []

    async def load_all(self):
        self.loads += 1
        if self.fail_load:
            raise RuntimeError("database unavailable")
        return dict(self.records)

    async def save(self, rec: EntityStatusRecord):
        if rec.id in self.fail_save:
            raise RuntimeError("disk full")
        self.saved.append(rec)
        self.records[rec.id] = rec


class FakeDeviceStore:
    def __init__(self, devices: Optional[List[DeviceTarget]] = None):
        self.devices = {d.token: d for d in (devices or [])}
        self.reads = 0
        self.deactivated: List[tuple] = []

    async def list_active(self):
        self.reads += 1
        return [d for d in self.devices.values() if d.active]

    async def upsert(self, token, **fields):
        device = self.devices.get(token) or DeviceTarget(token=token)
        for key, value in fields.items():
            if value is not None:
                setattr(device, key, value)
        device.active = True
        self.devices[token] = device
        return device

    async def deactivate(self, token, reason):
        self.deactivated.append((token, reason))
        device = self.devices.get(token)
        if device is None:
            return False
        device.active = False
        if reason == "invalid":
            device.invalid = True
        return True


class FakeLiveData:
    """Park id -> list of entities, or an exception to raise."""

    def __init__(self, parks: Optional[dict] = None):
        self.parks = parks or {}
        self.fetched: List[str] = []

    async def fetch_park(self, park_id):
        self.fetched.append(park_id)
        value = self.parks.get(park_id, LiveDataError(f"no data for {park_id}"))
        if isinstance(value, Exception):
            raise value
        return value


class FakePushSender:
    """Succeeds unless the token maps to a PushResult or exception."""

    def __init__(self, outcomes: Optional[dict] = None, enabled: bool = True):
        self.outcomes = outcomes or {}
        self.enabled = enabled
        self.sent: List[dict] = []

    async def send_notification(self, device_token, title, body, data=None, badge=1):
        self.sent.append({"token": device_token, "title": title, "body": body, "data": data})
        outcome = self.outcomes.get(device_token, PushResult(success=True))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeSmsSender:
    def __init__(self, counts=(0, 0), enabled: bool = True):
        self.counts = counts
        self.enabled = enabled
        self.bodies: List[str] = []

    async def send_to_all(self, body):
        self.bodies.append(body)
        return self.counts


class FakeTaskQueue:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.enqueued: List[tuple] = []

    def enqueue(self, callback_url, payload, fire_at):
        if self.fail:
            raise RuntimeError("queue unavailable")
        self.enqueued.append((callback_url, payload, fire_at))
        return "next_check"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


# Noon UTC is outside every bedtime window used in tests
NOON_UTC = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_watcher(
    parks: dict,
    cached: Optional[Dict[str, EntityStatusRecord]] = None,
    devices: Optional[List[DeviceTarget]] = None,
    push_outcomes: Optional[dict] = None,
    policy: Optional[SchedulePolicy] = None,
    task_queue=None,
    now: datetime = NOON_UTC,
    watched_rides: Optional[List[str]] = None,
) -> RideWatcher:
    status_store = FakeStatusStore(cached)
    status_cache = StatusCache(status_store)
    device_cache = DeviceDirectoryCache(FakeDeviceStore(devices), ttl=60)
    notifier = NotifierService(device_cache, FakePushSender(push_outcomes), FakeSmsSender())
    live_data = FakeLiveData(parks)
    diff_engine = DiffEngine(live_data, status_cache, status_store, watched_rides)

    return RideWatcher(
        park_ids=list(parks),
        diff_engine=diff_engine,
        status_cache=status_cache,
        device_cache=device_cache,
        notifier=notifier,
        policy=policy or SchedulePolicy(timezone="UTC"),
        task_queue=task_queue,
        dynamic_scheduling=task_queue is not None,
        service_url="https://ridewatch.example.com" if task_queue is not None else None,
        now=lambda: now,
    )


@pytest.fixture
def status_store():
    return FakeStatusStore()


@pytest.fixture
def device_store():
    return FakeDeviceStore([
        DeviceTarget(token="token-aaaaaaaaaaaaaaaaaaaa-1"),
        DeviceTarget(token="token-bbbbbbbbbbbbbbbbbbbb-2"),
        DeviceTarget(token="token-cccccccccccccccccccc-3", platform="android"),
    ])


@pytest.fixture
def clock():
    return FakeClock()
