"""SMS sender service - sends alerts through a Twilio-compatible Messages API."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class SmsConfig:
    """SMS gateway configuration."""
    enabled: bool = False
    api_url: str = ""  # e.g. https://api.twilio.com/2010-04-01/Accounts/<sid>/Messages.json
    account_sid: str = ""
    auth_token: str = ""
    from_number: str = ""
    recipients: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings) -> "SmsConfig":
        return cls(
            enabled=settings.sms_enabled,
            api_url=settings.sms_api_url,
            account_sid=settings.sms_account_sid,
            auth_token=settings.sms_auth_token,
            from_number=settings.sms_from_number,
            recipients=settings.sms_recipient_list,
        )


class SmsSenderService:
    """Sends one SMS per recipient. No retries."""

    def __init__(
        self,
        config: Optional[SmsConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.config = config or SmsConfig()
        self._transport = transport
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(
            self.config.enabled
            and self.config.api_url
            and self.config.from_number
            and self.config.recipients
        )

    async def _send_one(self, client: httpx.AsyncClient, recipient: str, body: str) -> bool:
        try:
            response = await client.post(
                self.config.api_url,
                data={"To": recipient, "From": self.config.from_number, "Body": body},
                auth=(self.config.account_sid, self.config.auth_token),
            )
            if response.status_code < 400:
                logger.info(f"SMS sent to ...{recipient[-4:]}")
                return True
            logger.warning(f"SMS to ...{recipient[-4:]} returned {response.status_code}")
            return False
        except Exception as e:
            logger.error(f"Failed to send SMS to ...{recipient[-4:]}: {e}")
            return False

    async def send_to_all(self, body: str) -> tuple[int, int]:
        """Send ``body`` to every configured recipient concurrently.

        Returns:
            Tuple of (success_count, failure_count)
        """
        if not self.enabled:
            return (0, 0)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            results = await asyncio.gather(
                *[self._send_one(client, number, body) for number in self.config.recipients]
            )

        success_count = sum(1 for ok in results if ok)
        failure_count = len(results) - success_count
        logger.info(f"SMS sent: {success_count} success, {failure_count} failed")
        return (success_count, failure_count)
