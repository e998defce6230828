from __future__ import annotations

from datetime import date

import httpx

from deadline.config import Settings
from deadline.errors import PipelineError
from deadline.llm_client import get_client
from deadline.models.interfaces import EventDetails, PipelineResult, ScrapedData, UpdateAnalysis
from deadline.pipeline.scrape import ScrapeOrchestrator, is_usable_article
from deadline.pipeline.synthesis import SynthesisEngine
from deadline.pipeline.updates import UpdateAnalyzer
from deadline.services import logger as log_service
from deadline.services.cache import CacheInvalidator
from deadline.services.logger import logger
from deadline.services.supabase import EventStore
from deadline.tools.article_fetcher import ArticleFetcher
from deadline.tools.google_search import GoogleSearchClient
from deadline.tools.image_search import ImageSearchClient


def merge_sources(details: EventDetails, scraped: ScrapedData, *, min_chars: int = 100) -> EventDetails:
    """Attach article URLs and image links gathered by the scrape."""
    details.sources = [
        article.url for article in scraped.articles if is_usable_article(article, min_chars=min_chars)
    ]
    details.images = list(scraped.images)
    return details


class EventPipeline:
    """Runs search, scrape, synthesis and persistence for one stored event.

    Stages run in a fixed order; the first failing stage raises a
    :class:`PipelineError` subclass and nothing after it runs, so the stored
    record is only written once the details are complete.
    """

    def __init__(
        self,
        store: EventStore,
        scraper: ScrapeOrchestrator,
        synthesis: SynthesisEngine,
        invalidator: CacheInvalidator,
        *,
        updates: UpdateAnalyzer | None = None,
        http_client: httpx.AsyncClient | None = None,
        min_article_chars: int = 100,
    ):
        self.store = store
        self.scraper = scraper
        self.synthesis = synthesis
        self.invalidator = invalidator
        self.updates = updates
        self._http_client = http_client
        self.min_article_chars = min_article_chars

    @classmethod
    def from_settings(cls, settings: Settings) -> EventPipeline:
        http_client = httpx.AsyncClient()
        search_client = GoogleSearchClient(
            http_client,
            api_key=settings.google_api_key,
            engine_id=settings.google_search_engine_id,
            base_url=settings.google_search_url,
            pages=settings.search_pages,
            page_size=settings.search_page_size,
            page_delay_seconds=settings.search_page_delay_seconds,
        )
        fetcher = ArticleFetcher(
            http_client,
            timeout_seconds=settings.article_timeout_seconds,
            max_chars=settings.article_max_chars,
        )
        image_client = ImageSearchClient(
            http_client,
            api_key=settings.google_api_key,
            engine_id=settings.google_search_engine_id,
            base_url=settings.google_search_url,
            timeout_seconds=settings.image_timeout_seconds,
            max_images=settings.max_images,
        )
        completion_client = get_client(settings)
        store = EventStore(url=settings.supabase_url, key=settings.supabase_service_role_key)
        invalidator = CacheInvalidator(
            http_client,
            base_url=settings.revalidate_base_url,
            timeout_seconds=settings.revalidate_timeout_seconds,
        )

        return cls(
            store,
            ScrapeOrchestrator(
                search_client,
                fetcher,
                image_client,
                max_articles=settings.max_articles_to_scrape,
                max_reddit=settings.max_reddit_articles,
                min_article_chars=settings.min_article_chars,
            ),
            SynthesisEngine(
                completion_client,
                max_articles=settings.synthesis_max_articles,
                article_chars=settings.synthesis_article_chars,
                max_snippets=settings.synthesis_max_snippets,
            ),
            invalidator,
            updates=UpdateAnalyzer(
                store,
                search_client,
                fetcher,
                completion_client,
                invalidator,
                max_articles=settings.updates_max_articles,
                default_lookback_days=settings.updates_default_lookback_days,
            ),
            http_client=http_client,
            min_article_chars=settings.min_article_chars,
        )

    @property
    def http_client(self) -> httpx.AsyncClient | None:
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def process_event(self, event_id: str) -> PipelineResult:
        stage = "load_event"
        try:
            log_service.log_pipeline_stage(event_id, stage, "started")
            event = await self.store.fetch_event(event_id)
            logger.info(f"Processing event {event_id} with query {event.query!r}")

            stage = "scrape"
            scraped = await self.scraper.run(event.query)
            log_service.log_pipeline_stage(
                event_id,
                stage,
                "completed",
                results=len(scraped.results),
                articles=len(scraped.articles),
                images=len(scraped.images),
            )

            stage = "synthesize"
            details = await self.synthesis.synthesize(scraped, event.query, event_id=event_id)
            details = merge_sources(details, scraped, min_chars=self.min_article_chars)

            stage = "persist"
            await self.store.save_event_details(event_id, details)
        except PipelineError as exc:
            log_service.log_pipeline_stage(event_id, stage, "failed", error=str(exc))
            raise

        await self.store.update_event_timestamp(event_id)
        await self.invalidator.invalidate(event_id)
        log_service.log_pipeline_stage(
            event_id,
            "done",
            "completed",
            sources=len(details.sources),
            images=len(details.images),
        )
        return PipelineResult(event=event, details=details, scraped=scraped)

    async def analyze_updates(self, event_id: str, since: date | None = None) -> UpdateAnalysis:
        if self.updates is None:
            raise PipelineError("Update analysis is not configured for this pipeline")
        try:
            return await self.updates.analyze(event_id, since)
        except PipelineError as exc:
            log_service.log_pipeline_stage(event_id, "updates", "failed", error=str(exc))
            raise
