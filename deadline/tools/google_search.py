from __future__ import annotations

import asyncio
import json
from datetime import date
from typing import Any

import httpx

from deadline.errors import ConfigurationError, SearchError
from deadline.models.interfaces import SearchResult
from deadline.services.logger import logger
from deadline.tools.web_utils import is_html_response

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

BLOCKED_DOMAINS = (
    "tiktok.com",
    "pinterest.com",
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "youtube.com",
)

PUBLISHED_DATE_META_KEYS = (
    "article:published_time",
    "og:article:published_time",
    "datepublished",
    "pubdate",
    "publishdate",
    "date",
    "article:modified_time",
)


class PageFailure(Exception):
    """One search page could not be used."""


def _published_date(item: dict[str, Any]) -> str | None:
    pagemap = item.get("pagemap")
    if not isinstance(pagemap, dict):
        return None
    metatags = pagemap.get("metatags")
    if not isinstance(metatags, list):
        return None
    for tags in metatags:
        if not isinstance(tags, dict):
            continue
        for key in PUBLISHED_DATE_META_KEYS:
            raw = tags.get(key)
            if not isinstance(raw, str) or len(raw) < 10:
                continue
            try:
                return date.fromisoformat(raw[:10]).isoformat()
            except ValueError:
                continue
    return None


def _to_result(item: dict[str, Any]) -> SearchResult:
    return SearchResult(
        title=str(item.get("title") or "").strip(),
        link=str(item.get("link") or "").strip(),
        snippet=str(item.get("snippet") or "").strip(),
        display_link=str(item.get("displayLink") or "").strip(),
        published_date=_published_date(item),
    )


def _matches_domain(result: SearchResult, domain: str) -> bool:
    return domain in result.link.lower() or domain in result.display_link.lower()


def is_blocked(result: SearchResult) -> bool:
    return any(_matches_domain(result, blocked) for blocked in BLOCKED_DOMAINS)


def is_reddit(result: SearchResult) -> bool:
    return _matches_domain(result, "reddit.com")


def filter_results(results: list[SearchResult]) -> list[SearchResult]:
    """Dedupe by link (first wins), drop blocked domains and incomplete hits."""
    seen: set[str] = set()
    filtered: list[SearchResult] = []
    for result in results:
        if result.link in seen:
            continue
        seen.add(result.link)
        if is_blocked(result):
            continue
        if not (result.link and result.title and result.snippet):
            continue
        filtered.append(result)
    return filtered


def select_articles_to_scrape(
    results: list[SearchResult],
    *,
    max_total: int = 18,
    max_reddit: int = 2,
) -> list[SearchResult]:
    """Top non-Reddit hits plus a small Reddit quota, bounded for scraping."""
    reddit = [r for r in results if is_reddit(r)][: max(max_reddit, 0)]
    non_reddit = [r for r in results if not is_reddit(r)]
    non_reddit_slots = max(max_total - max(max_reddit, 0), 0)
    return (non_reddit[:non_reddit_slots] + reddit)[:max_total]


class GoogleSearchClient:
    """Paginated Google Custom Search client."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        engine_id: str,
        base_url: str = GOOGLE_SEARCH_URL,
        pages: int = 3,
        page_size: int = 10,
        page_delay_seconds: float = 0.3,
    ):
        self._client = http_client
        self.api_key = api_key
        self.engine_id = engine_id
        self.base_url = base_url
        self.pages = max(int(pages), 1)
        self.page_size = max(min(int(page_size), 10), 1)
        self.page_delay_seconds = max(float(page_delay_seconds), 0.0)

    async def search(
        self,
        query: str,
        *,
        date_restrict: str | None = None,
        sort: str | None = None,
        pages: int | None = None,
    ) -> list[SearchResult]:
        """Run up to ``pages`` sequential page requests and filter the union."""
        if not self.api_key or not self.engine_id:
            raise ConfigurationError("Google API credentials not configured")

        page_count = max(int(pages or self.pages), 1)
        all_results: list[SearchResult] = []
        failed_pages = 0

        for page in range(1, page_count + 1):
            params: dict[str, Any] = {
                "key": self.api_key,
                "cx": self.engine_id,
                "q": query,
                "num": self.page_size,
                "start": (page - 1) * self.page_size + 1,
            }
            if date_restrict:
                params["dateRestrict"] = date_restrict
            if sort:
                params["sort"] = sort

            logger.debug(f"Web search request for page {page}: {query!r}")
            try:
                page_results = await self._fetch_page(params)
            except PageFailure as exc:
                failed_pages += 1
                logger.warning(f"Web search page {page} skipped: {exc}")
            else:
                all_results.extend(page_results)
                logger.info(f"Page {page}: found {len(page_results)} results")

            if page < page_count:
                await asyncio.sleep(self.page_delay_seconds)

        if failed_pages == page_count:
            raise SearchError(f"All {page_count} web search pages failed for query {query!r}")

        filtered = filter_results(all_results)
        logger.info(f"Total search results: {len(all_results)}, filtered to {len(filtered)}")
        return filtered

    async def _fetch_page(self, params: dict[str, Any]) -> list[SearchResult]:
        try:
            response = await self._client.get(
                self.base_url,
                params=params,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise PageFailure(f"transport error: {exc}") from exc

        if not response.is_success:
            raise PageFailure(f"status {response.status_code}")

        body = response.text
        if is_html_response(body):
            raise PageFailure("HTML page returned instead of JSON")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise PageFailure(f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise PageFailure("unexpected payload shape")
        if payload.get("error"):
            raise PageFailure(f"API error: {payload['error']}")

        items = payload.get("items") or []
        if not isinstance(items, list):
            return []
        return [_to_result(item) for item in items if isinstance(item, dict)]
