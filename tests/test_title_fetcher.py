from __future__ import annotations

import httpx
import pytest

from deadline.tools.title_fetcher import DEFAULT_TITLE, clean_title, fetch_source_title

from conftest import mock_http_client


@pytest.mark.parametrize(
    ("raw", "site_name", "expected"),
    [
        ("Police arrest suspect in fire - BBC News", "BBC News", "Police arrest suspect in fire"),
        ("BBC News | Police arrest suspect in fire", "BBC News", "Police arrest suspect in fire"),
        ("Welcome | Home", "", "Welcome"),
        ("Springfield warehouse fire | Local | Daily Herald", "", "Springfield warehouse fire"),
        ("Short | Section name", "", "Short | Section name"),
        ("  Spaced\n  out   title ", "", "Spaced out title"),
        ("ab", "", DEFAULT_TITLE),
    ],
)
def test_clean_title(raw, site_name, expected):
    assert clean_title(raw, site_name) == expected


def test_clean_title_truncates_long_titles():
    cleaned = clean_title("x" * 130)
    assert len(cleaned) == 120
    assert cleaned.endswith("...")


@pytest.mark.asyncio
async def test_fetch_source_title_uses_page_metadata():
    html = (
        "<html><head>"
        "<meta property='og:title' content='Fire guts warehouse - Springfield Times'>"
        "<meta property='og:site_name' content='Springfield Times'>"
        "</head><body></body></html>"
    )

    async with mock_http_client(lambda request: httpx.Response(200, text=html)) as http_client:
        title = await fetch_source_title(http_client, "https://springfieldtimes.com/fire")

    assert title == "Fire guts warehouse"


@pytest.mark.asyncio
async def test_fetch_source_title_falls_back_on_failure():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused")

    async with mock_http_client(refuse) as http_client:
        assert await fetch_source_title(http_client, "https://down.example.com") == DEFAULT_TITLE

    async with mock_http_client(lambda request: httpx.Response(503)) as http_client:
        assert await fetch_source_title(http_client, "https://busy.example.com") == DEFAULT_TITLE

    async with mock_http_client(lambda request: httpx.Response(200, text="<html></html>")) as http_client:
        assert await fetch_source_title(http_client, "https://blank.example.com") == DEFAULT_TITLE
