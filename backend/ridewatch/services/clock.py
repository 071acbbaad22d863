"""Wall-clock helpers for a named timezone."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class WallClock:
    """Local time of day in some timezone."""
    hour: int
    minute: int
    second: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_naive() -> datetime:
    """UTC now without tzinfo, for the naive DateTime columns."""
    return utcnow().replace(tzinfo=None)


def wall_clock(now: Optional[datetime], tz_name: str) -> WallClock:
    """Time of day in ``tz_name`` at ``now`` (defaults to the current time).

    Naive datetimes are taken to be UTC.
    """
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(ZoneInfo(tz_name))
    return WallClock(hour=local.hour, minute=local.minute, second=local.second)


def seconds_until_hour(clock: WallClock, target_hour: int) -> int:
    """Seconds from ``clock`` until the next ``target_hour``:00:00.

    Plain wall-clock arithmetic; DST shifts are ignored. If ``clock`` is
    already at or past ``target_hour`` the target is tomorrow.
    """
    if clock.hour < target_hour:
        hours_until = target_hour - clock.hour
    else:
        hours_until = 24 - clock.hour + target_hour

    return hours_until * 3600 - clock.minute * 60 - clock.second
