from __future__ import annotations

import asyncio

import httpx
import pytest

from deadline.tools.article_fetcher import ArticleFetcher

from conftest import article_html, mock_http_client

BODY = "The council approved an emergency relief fund for displaced workers on Tuesday. " * 6


@pytest.mark.asyncio
async def test_fetch_returns_extracted_article():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=article_html(BODY, title="Relief fund approved"))

    async with mock_http_client(handler) as http_client:
        article = await ArticleFetcher(http_client).fetch("https://www.localnews.com/relief")

    assert article is not None
    assert article.title == "Relief fund approved"
    assert article.source == "localnews.com"
    assert article.content.startswith("The council approved")
    assert "Chrome" in seen[0].headers["User-Agent"]
    assert seen[0].headers["Accept-Encoding"] == "gzip, deflate"


@pytest.mark.asyncio
async def test_fetch_returns_none_on_error_status():
    async with mock_http_client(lambda request: httpx.Response(404, text="x" * 500)) as http_client:
        assert await ArticleFetcher(http_client).fetch("https://example.com/missing") is None


@pytest.mark.asyncio
async def test_fetch_returns_none_for_short_body():
    async with mock_http_client(lambda request: httpx.Response(200, text="<html></html>")) as http_client:
        assert await ArticleFetcher(http_client).fetch("https://example.com/empty") is None


@pytest.mark.asyncio
async def test_fetch_returns_none_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused")

    async with mock_http_client(handler) as http_client:
        assert await ArticleFetcher(http_client).fetch("https://example.com/down") is None


@pytest.mark.asyncio
async def test_fetch_times_out():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, text=article_html(BODY))

    async with mock_http_client(handler) as http_client:
        fetcher = ArticleFetcher(http_client, timeout_seconds=1.0)
        assert await fetcher.fetch("https://example.com/slow") is None


@pytest.mark.asyncio
async def test_fetch_truncates_to_configured_limit():
    async with mock_http_client(lambda request: httpx.Response(200, text=article_html(BODY))) as http_client:
        article = await ArticleFetcher(http_client, max_chars=50).fetch("https://example.com/relief")

    assert article is not None
    assert len(article.content) == 50
