"""Push notification sender service using APNs for iOS."""
import logging
from dataclasses import dataclass
from typing import Optional

from aioapns import APNs, NotificationRequest, PushType

from .clock import utcnow

logger = logging.getLogger(__name__)

# APNs reasons meaning the token will never work again
INVALID_TOKEN_REASONS = frozenset({"BadDeviceToken", "Unregistered", "DeviceTokenNotForTopic"})
GONE_STATUS = "410"


@dataclass
class PushConfig:
    """APNs configuration."""
    enabled: bool = False
    key_path: str = ""  # Path to .p8 key file
    key_id: str = ""
    team_id: str = ""
    bundle_id: str = ""
    use_sandbox: bool = True  # Use sandbox for development

    @classmethod
    def from_settings(cls, settings) -> "PushConfig":
        return cls(
            enabled=settings.push_enabled,
            key_path=settings.apns_key_path,
            key_id=settings.apns_key_id,
            team_id=settings.apns_team_id,
            bundle_id=settings.apns_bundle_id,
            use_sandbox=settings.apns_use_sandbox,
        )


@dataclass
class PushResult:
    """Outcome of one send. ``invalid_token`` marks permanent failures."""
    success: bool
    invalid_token: bool = False
    error: Optional[str] = None


class PushSenderService:
    """Service for sending push notifications via APNs."""

    def __init__(self):
        self._client: Optional[APNs] = None
        self._config: Optional[PushConfig] = None

    @property
    def enabled(self) -> bool:
        return bool(self._client and self._config and self._config.enabled)

    def configure(self, config: PushConfig, client: Optional[APNs] = None):
        """Configure the APNs client. ``client`` overrides the one built from config."""
        self._config = config
        self._client = None  # Reset client to force reconnection

        if not config.enabled:
            logger.info("Push notifications are disabled")
            return

        if client is not None:
            self._client = client
            return

        if not all([config.key_path, config.key_id, config.team_id, config.bundle_id]):
            logger.warning("Push notifications enabled but APNs not fully configured")
            return

        try:
            self._client = APNs(
                key=config.key_path,
                key_id=config.key_id,
                team_id=config.team_id,
                topic=config.bundle_id,
                use_sandbox=config.use_sandbox,
            )
            logger.info(f"APNs client configured (sandbox={config.use_sandbox})")
        except Exception as e:
            logger.error(f"Failed to configure APNs client: {e}")
            self._client = None

    async def send_notification(
        self,
        device_token: str,
        title: str,
        body: str,
        data: Optional[dict] = None,
        badge: Optional[int] = 1,
    ) -> PushResult:
        """Send a push notification to a single device.

        Never raises; transport errors come back as a failed PushResult.
        """
        if not self.enabled:
            return PushResult(success=False, error="push not configured")

        try:
            aps = {"alert": {"title": title, "body": body}, "sound": "default"}
            if badge is not None:
                aps["badge"] = badge

            payload = {"aps": aps}
            if data:
                payload.update(data)
            payload["timestamp"] = utcnow().isoformat()

            request = NotificationRequest(
                device_token=device_token,
                message=payload,
                push_type=PushType.ALERT,
            )

            response = await self._client.send_notification(request)

            if response.is_successful:
                logger.info(f"Push sent to device {device_token[:20]}...")
                return PushResult(success=True)

            invalid = (
                response.description in INVALID_TOKEN_REASONS
                or str(response.status) == GONE_STATUS
            )
            logger.warning(
                f"Push notification failed: {response.description} "
                f"(token: {device_token[:20]}...)"
            )
            return PushResult(success=False, invalid_token=invalid, error=response.description)

        except Exception as e:
            logger.error(f"Failed to send push to {device_token[:20]}...: {e}")
            return PushResult(success=False, error=str(e))
