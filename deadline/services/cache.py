from __future__ import annotations

import httpx

from deadline.services.logger import logger


def event_cache_tags(event_id: str) -> list[str]:
    return [
        f"event-{event_id}",
        f"event-details-{event_id}",
        f"event-updates-{event_id}",
    ]


class CacheInvalidator:
    """Asks the site to drop its cached pages for one event.

    Best-effort: the persisted record is already correct, so every failure is
    logged and reported as ``False``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str,
        timeout_seconds: float = 10.0,
    ):
        self._client = http_client
        self.base_url = base_url.strip().rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def invalidate(self, event_id: str) -> bool:
        if not self.base_url:
            logger.debug(f"Revalidation base URL not configured; skipping cache bust for {event_id}")
            return False

        endpoint = f"{self.base_url}/api/internal/revalidate"
        try:
            response = await self._client.post(
                endpoint,
                json={"tags": event_cache_tags(event_id)},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.warning(f"Cache revalidation failed for event {event_id}: {exc}")
            return False

        if not response.is_success:
            logger.warning(
                f"Cache revalidation for event {event_id} returned {response.status_code}"
            )
            return False

        logger.info(f"Cache revalidated for event {event_id}")
        return True
