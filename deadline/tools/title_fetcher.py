from __future__ import annotations

import re

import httpx
from bs4 import BeautifulSoup

from deadline.services.logger import logger
from deadline.tools.content_extractor import extract_title
from deadline.tools.web_utils import BROWSER_HEADERS, collapse_whitespace

DEFAULT_TITLE = "Article"
MAX_TITLE_CHARS = 120
COMMON_SUFFIXES = ("Home", "Homepage", "Official Site", "Official Website")
SEPARATORS = r"[-|—–]"


def clean_title(title: str, site_name: str = "") -> str:
    """Tidy a raw page title for display in a source list."""
    title = collapse_whitespace(title)

    site_name = collapse_whitespace(site_name)
    if site_name and site_name.lower() in title.lower():
        escaped = re.escape(site_name)
        title = re.sub(rf"\s*{SEPARATORS}\s*{escaped}\s*$", "", title, flags=re.IGNORECASE)
        title = re.sub(rf"^{escaped}\s*{SEPARATORS}\s*", "", title, flags=re.IGNORECASE)
        title = title.strip()

    for suffix in COMMON_SUFFIXES:
        title = re.sub(
            rf"\s*{SEPARATORS}\s*{re.escape(suffix)}\s*$", "", title, flags=re.IGNORECASE
        ).strip()

    parts = re.split(r"[|—–]", title)
    if len(parts) > 1:
        main_part = parts[0].strip()
        if len(main_part) > 10:
            title = main_part

    if len(title) > MAX_TITLE_CHARS:
        title = title[: MAX_TITLE_CHARS - 3] + "..."

    if len(title) < 3:
        return DEFAULT_TITLE
    return title


async def fetch_source_title(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    timeout_seconds: float = 15.0,
) -> str:
    """Display title for a source URL; ``"Article"`` whenever anything fails."""
    try:
        response = await http_client.get(
            url,
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            timeout=timeout_seconds,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.debug(f"Title fetch failed for {url}: {exc}")
        return DEFAULT_TITLE

    if not response.is_success:
        return DEFAULT_TITLE

    soup = BeautifulSoup(response.text, "html.parser")
    title = extract_title(soup)
    if not title:
        return DEFAULT_TITLE

    site_tag = soup.select_one('meta[property="og:site_name"]')
    site_name = str(site_tag.get("content") or "") if site_tag is not None else ""
    return clean_title(title, site_name)
