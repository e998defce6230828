from __future__ import annotations

import json
from typing import Any

import httpx

from deadline.services.logger import logger
from deadline.tools.google_search import GOOGLE_SEARCH_URL
from deadline.tools.web_utils import is_html_response

EXCLUDED_MARKERS = ("favicon", "/logo", "/icon")
IMAGE_MARKERS = (".jpg", ".jpeg", ".png", ".webp", ".gif", "image")


def is_usable_image(link: str) -> bool:
    lowered = link.lower()
    if any(marker in lowered for marker in EXCLUDED_MARKERS):
        return False
    return any(marker in lowered for marker in IMAGE_MARKERS)


class ImageSearchClient:
    """Best-effort Google image search. Never raises."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        engine_id: str,
        base_url: str = GOOGLE_SEARCH_URL,
        timeout_seconds: float = 10.0,
        max_images: int = 10,
    ):
        self._client = http_client
        self.api_key = api_key
        self.engine_id = engine_id
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.max_images = max(int(max_images), 0)

    async def search(self, query: str) -> list[str]:
        if not self.api_key or not self.engine_id:
            logger.warning("Google API credentials not configured for image search")
            return []

        params: dict[str, Any] = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "searchType": "image",
            "num": 10,
            "safe": "active",
            "imgSize": "medium",
        }
        try:
            response = await self._client.get(
                self.base_url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.warning(f"Image search error: {exc}")
            return []

        if not response.is_success:
            logger.warning(f"Image search failed with status: {response.status_code}")
            return []

        body = response.text
        if is_html_response(body):
            logger.warning("Image search returned an HTML page")
            return []
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON response from image search")
            return []

        if not isinstance(payload, dict):
            return []
        if payload.get("error"):
            logger.warning(f"Image search API error: {payload['error']}")
            return []

        items = payload.get("items")
        if not isinstance(items, list):
            logger.warning("No image items found in response")
            return []

        links = [
            item["link"]
            for item in items
            if isinstance(item, dict) and isinstance(item.get("link"), str) and item["link"]
        ]
        images = [link for link in links if is_usable_image(link)][: self.max_images]
        logger.info(f"Found {len(images)} valid image links")
        return images
