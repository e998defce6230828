from __future__ import annotations

import asyncio

from deadline.errors import NoArticlesError
from deadline.models.interfaces import ScrapedArticle, ScrapedData
from deadline.services.logger import logger
from deadline.tools.article_fetcher import ArticleFetcher
from deadline.tools.google_search import GoogleSearchClient, select_articles_to_scrape
from deadline.tools.image_search import ImageSearchClient


def is_usable_article(article: ScrapedArticle | None, *, min_chars: int = 100) -> bool:
    return article is not None and len(article.content) > min_chars


async def fetch_all(
    fetcher: ArticleFetcher,
    urls: list[str],
    *,
    min_chars: int = 100,
) -> list[ScrapedArticle]:
    """Fetch every URL concurrently; failed or thin articles are dropped."""
    outcomes = await asyncio.gather(
        *(fetcher.fetch(url) for url in urls),
        return_exceptions=True,
    )
    articles: list[ScrapedArticle] = []
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning(f"Scrape of {url} raised: {outcome!r}")
            continue
        if is_usable_article(outcome, min_chars=min_chars):
            articles.append(outcome)
    return articles


class ScrapeOrchestrator:
    """Web search, concurrent article scraping and image search for one query."""

    def __init__(
        self,
        search_client: GoogleSearchClient,
        fetcher: ArticleFetcher,
        image_client: ImageSearchClient,
        *,
        max_articles: int = 18,
        max_reddit: int = 2,
        min_article_chars: int = 100,
    ):
        self.search_client = search_client
        self.fetcher = fetcher
        self.image_client = image_client
        self.max_articles = max(int(max_articles), 1)
        self.max_reddit = max(int(max_reddit), 0)
        self.min_article_chars = max(int(min_article_chars), 0)

    async def run(self, query: str) -> ScrapedData:
        results = await self.search_client.search(query)

        to_scrape = select_articles_to_scrape(
            results,
            max_total=self.max_articles,
            max_reddit=self.max_reddit,
        )
        logger.info(f"Scraping content from {len(to_scrape)} articles")

        articles = await fetch_all(
            self.fetcher,
            [result.link for result in to_scrape],
            min_chars=self.min_article_chars,
        )
        logger.info(f"Successfully scraped {len(articles)} of {len(to_scrape)} articles")
        if not articles:
            raise NoArticlesError(f"No articles found or scraped for query {query!r}")

        images = await self.image_client.search(query)
        logger.info(f"Found {len(images)} image URLs")

        return ScrapedData(results=results, articles=articles, images=images)
