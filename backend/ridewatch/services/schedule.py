"""Next-check delay: bedtime suppression and alert-mode acceleration.

Everything here is a pure function of the current time, the number of rides
that were not operating in the last check, and the policy. Enqueueing the
next check is the watcher's job.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .clock import WallClock, seconds_until_hour, wall_clock

# Added after the bedtime end so the wake-up check lands outside the window
BEDTIME_BUFFER_SECONDS = 60
MIN_BEDTIME_DELAY_SECONDS = 60


@dataclass(frozen=True)
class SchedulePolicy:
    """Polling policy; either rule can be switched off independently."""
    normal_interval: int = 30
    alert_mode_enabled: bool = False
    alert_interval: int = 15
    bedtime_enabled: bool = True
    bedtime_start: int = 1
    bedtime_end: int = 7
    timezone: str = "America/New_York"

    @classmethod
    def from_settings(cls, settings) -> "SchedulePolicy":
        return cls(
            normal_interval=settings.check_interval_sec,
            alert_mode_enabled=settings.alert_mode_enabled,
            alert_interval=settings.alert_interval_sec,
            bedtime_enabled=settings.bedtime_enabled,
            bedtime_start=settings.bedtime_start,
            bedtime_end=settings.bedtime_end,
            timezone=settings.bedtime_timezone,
        )


@dataclass(frozen=True)
class ScheduleDecision:
    delay_seconds: int
    reason: str
    suppressed: bool = False


def in_window(hour: int, start: int, end: int) -> bool:
    """Whether ``hour`` falls in [start, end), wrapping midnight when start >= end."""
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def is_quiet_hours(now: Optional[datetime], policy: SchedulePolicy) -> bool:
    """Check if we're currently in bedtime hours."""
    if not policy.bedtime_enabled:
        return False
    clock = wall_clock(now, policy.timezone)
    return in_window(clock.hour, policy.bedtime_start, policy.bedtime_end)


def seconds_until_bedtime_ends(clock: WallClock, policy: SchedulePolicy) -> int:
    """Delay that wakes us just after bedtime ends, never under a minute."""
    remaining = seconds_until_hour(clock, policy.bedtime_end)
    return max(remaining + BEDTIME_BUFFER_SECONDS, MIN_BEDTIME_DELAY_SECONDS)


def next_check_delay(
    now: Optional[datetime],
    down_count: int,
    policy: SchedulePolicy,
) -> ScheduleDecision:
    """Decide how long to wait before the next check.

    Bedtime wins over alert mode: during bedtime the next check is
    deferred to the end of the window even if rides are down.
    """
    clock = wall_clock(now, policy.timezone)

    if policy.bedtime_enabled and in_window(clock.hour, policy.bedtime_start, policy.bedtime_end):
        delay = seconds_until_bedtime_ends(clock, policy)
        hours, minutes = delay // 3600, (delay % 3600) // 60
        return ScheduleDecision(
            delay_seconds=delay,
            reason=f"bedtime (sleeping for {hours}h {minutes}m until {policy.bedtime_end}:00)",
            suppressed=True,
        )

    if policy.alert_mode_enabled and down_count > 0:
        return ScheduleDecision(
            delay_seconds=policy.alert_interval,
            reason=f"alert mode ({down_count} rides not operating)",
        )

    return ScheduleDecision(delay_seconds=policy.normal_interval, reason="normal interval")
