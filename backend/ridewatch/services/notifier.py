"""Notifier service - sends push and SMS notifications for ride status changes."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .device_cache import DeviceDirectoryCache
from .diff_engine import StatusChangeEvent
from .push_sender import PushResult, PushSenderService
from .sms_sender import SmsSenderService
from .stores import DeviceTarget

logger = logging.getLogger(__name__)

# Up to this many changes are announced one by one; more become a summary
MAX_INDIVIDUAL_NOTIFICATIONS = 3

# Limit on in-flight sends per channel
MAX_CONCURRENT_SENDS = 10

TITLES = {
    "OPERATING": "Ride Back Up!",
    "DOWN": "Ride Down",
    "CLOSED": "Ride Closed",
    "REFURBISHMENT": "Ride Under Refurbishment",
}
DEFAULT_TITLE = "Ride Status Changed"


@dataclass
class Notification:
    title: str
    body: str
    data: dict = field(default_factory=dict)


@dataclass
class ChannelCounts:
    sent: int = 0
    failed: int = 0

    def add(self, sent: int, failed: int):
        self.sent += sent
        self.failed += failed


@dataclass
class DispatchResult:
    """Per-channel delivery counts for one dispatch."""
    notifications: int = 0
    push: ChannelCounts = field(default_factory=ChannelCounts)
    sms: ChannelCounts = field(default_factory=ChannelCounts)


def notification_title(new_status: str) -> str:
    return TITLES.get(new_status, DEFAULT_TITLE)


def format_change(event: StatusChangeEvent) -> str:
    return f"{event.entity_name}: {event.old_status or 'Unknown'} → {event.new_status}"


def build_notifications(events: List[StatusChangeEvent]) -> List[Notification]:
    """One notification per change, or a single summary for larger batches."""
    if not events:
        return []

    if len(events) <= MAX_INDIVIDUAL_NOTIFICATIONS:
        return [
            Notification(
                title=notification_title(event.new_status),
                body=format_change(event),
                data={
                    "ride_id": event.entity_id,
                    "ride_name": event.entity_name,
                    "old_status": event.old_status,
                    "new_status": event.new_status,
                    "type": "status_change",
                },
            )
            for event in events
        ]

    return [
        Notification(
            title=f"{len(events)} Ride Status Changes",
            body="\n".join(f"• {format_change(event)}" for event in events),
            data={"type": "status_change_summary", "count": str(len(events))},
        )
    ]


class NotifierService:
    """Fans notifications out to every channel.

    A failed send is counted and logged; it never stops the other sends.
    """

    def __init__(
        self,
        device_cache: DeviceDirectoryCache,
        push_sender: PushSenderService,
        sms_sender: Optional[SmsSenderService] = None,
    ):
        self.device_cache = device_cache
        self.push_sender = push_sender
        self.sms_sender = sms_sender

    async def dispatch(self, events: List[StatusChangeEvent]) -> DispatchResult:
        """Send notifications for a cycle's status changes."""
        result = DispatchResult()
        for notification in build_notifications(events):
            await self._deliver(notification, result)
        return result

    async def send_test(self, title: str, body: str) -> DispatchResult:
        result = DispatchResult()
        await self._deliver(Notification(title=title, body=body, data={"type": "test"}), result)
        return result

    async def _deliver(self, notification: Notification, result: DispatchResult):
        push_counts, sms_counts = await asyncio.gather(
            self._send_push(notification),
            self._send_sms(notification),
        )
        result.notifications += 1
        result.push.add(*push_counts)
        result.sms.add(*sms_counts)

    async def _send_push(self, notification: Notification) -> tuple[int, int]:
        if not self.push_sender.enabled:
            logger.warning("Push not configured, skipping push notification")
            return (0, 0)

        try:
            devices = await self.device_cache.get_active_targets()
        except Exception as e:
            logger.error(f"Failed to load devices for push: {e}")
            return (0, 0)

        if not devices:
            logger.info("No registered devices for push notifications")
            return (0, 0)

        logger.info(f"Sending push notification to {len(devices)} device(s)")
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_SENDS)

        async def send_with_limit(device: DeviceTarget) -> PushResult:
            async with semaphore:
                return await self._send_to_device(device, notification)

        results = await asyncio.gather(*[send_with_limit(device) for device in devices])

        success_count = sum(1 for r in results if r.success)
        failure_count = len(results) - success_count
        logger.info(f"Push notifications sent: {success_count} success, {failure_count} failed")
        return (success_count, failure_count)

    async def _send_to_device(self, device: DeviceTarget, notification: Notification) -> PushResult:
        try:
            result = await self.push_sender.send_notification(
                device_token=device.token,
                title=notification.title,
                body=notification.body,
                data=notification.data,
            )
        except Exception as e:
            logger.error(f"Failed to send push to {device.token[:20]}...: {e}")
            return PushResult(success=False, error=str(e))

        if result.invalid_token:
            try:
                await self.device_cache.mark_invalid(device.token)
            except Exception as e:
                logger.error(f"Failed to deactivate {device.token[:20]}...: {e}")
        return result

    async def _send_sms(self, notification: Notification) -> tuple[int, int]:
        if not self.sms_sender or not self.sms_sender.enabled:
            return (0, 0)
        try:
            return await self.sms_sender.send_to_all(f"{notification.title}\n{notification.body}")
        except Exception as e:
            logger.error(f"Failed to send SMS notifications: {e}")
            return (0, len(self.sms_sender.config.recipients))
