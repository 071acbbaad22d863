"""Live data client for the ThemeParks Wiki API."""
import logging
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)


class LiveDataError(Exception):
    """A park's live data could not be fetched or understood."""


class LiveDataClient:
    """Fetches live entity states for a park."""

    def __init__(
        self,
        base_url: str = "https://api.themeparks.wiki/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def fetch_park(self, park_id: str) -> List[dict]:
        """Return the raw ``liveData`` entries for a park.

        Raises:
            LiveDataError: on network errors, non-2xx responses or a body
                without a ``liveData`` list.
        """
        url = f"{self.base_url}/entity/{park_id}/live"
        logger.info(f"Fetching live data for park: {park_id}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            raise LiveDataError(f"Timeout fetching park {park_id}")
        except httpx.HTTPError as e:
            raise LiveDataError(f"Failed to fetch park {park_id}: {e}") from e

        if not response.is_success:
            raise LiveDataError(
                f"Failed to fetch park data: {response.status_code} {response.reason_phrase}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise LiveDataError(f"Invalid JSON for park {park_id}") from e

        live_data = payload.get("liveData") if isinstance(payload, dict) else None
        if not isinstance(live_data, list):
            raise LiveDataError(f"No live data array for park {park_id}")

        return live_data
