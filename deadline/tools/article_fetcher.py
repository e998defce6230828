from __future__ import annotations

import asyncio

import httpx

from deadline.models.interfaces import ScrapedArticle
from deadline.services.logger import logger
from deadline.tools.content_extractor import MAX_CONTENT_CHARS, extract_article_content
from deadline.tools.web_utils import BROWSER_HEADERS

MIN_HTML_CHARS = 100


class ArticleFetcher:
    """Fetch a single article page and hand it to the content extractor.

    Scrape failures are routine on the open web, so every failure mode
    (non-2xx, short body, timeout, transport error) returns ``None``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout_seconds: float = 15.0,
        max_chars: int = MAX_CONTENT_CHARS,
    ):
        self._client = http_client
        self.timeout_seconds = max(float(timeout_seconds), 1.0)
        self.max_chars = max(int(max_chars), 1)

    async def fetch(self, url: str) -> ScrapedArticle | None:
        try:
            response = await asyncio.wait_for(
                self._client.get(
                    url,
                    headers=BROWSER_HEADERS,
                    follow_redirects=True,
                    timeout=self.timeout_seconds,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching {url} after {self.timeout_seconds}s")
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(f"Error scraping {url}: {exc}")
            return None

        if not response.is_success:
            logger.warning(f"Failed to fetch {url}: {response.status_code} {response.reason_phrase}")
            return None

        html = response.text
        if not html or len(html) < MIN_HTML_CHARS:
            logger.warning(f"Insufficient content from {url}")
            return None

        return extract_article_content(html, url, max_chars=self.max_chars)
