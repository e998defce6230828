from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

from deadline.errors import EmptyCompletionError
from deadline.llm_client import CompletionClient
from deadline.models.interfaces import EventUpdate, ScrapedArticle, SearchResult, UpdateAnalysis
from deadline.pipeline.scrape import fetch_all
from deadline.pipeline.synthesis import parse_llm_json
from deadline.services import logger as log_service
from deadline.services.cache import CacheInvalidator
from deadline.services.logger import logger
from deadline.services.supabase import EventStore
from deadline.tools.article_fetcher import ArticleFetcher
from deadline.tools.google_search import GoogleSearchClient

VALID_STATUSES = ("Justice", "Injustice")

UPDATES_SYSTEM_PROMPT = (
    "You extract dated news developments. Respond with ONLY one valid JSON object, "
    "no markdown and no commentary."
)


def build_update_prompt(
    query: str,
    results: list[SearchResult],
    last_update_date: str,
    full_content: dict[str, str] | None = None,
) -> str:
    full_content = full_content or {}
    articles = "\n".join(
        f"{index}. {result.title}\n"
        f"{result.snippet}\n"
        f"Published: {result.published_date or 'N/A'}\n"
        f"Full Content: {full_content.get(result.link) or 'N/A'}\n"
        "---"
        for index, result in enumerate(results, 1)
    )
    return f"""Analyze news articles about "{query}" published after {last_update_date}.

Extract meaningful updates and return ONLY valid JSON:

{{
  "status": "Justice" or "Injustice",
  "updates": [
    {{
      "date": "YYYY-MM-DD",
      "title": "Specific development (not case name)",
      "description": "Concise summary with key facts, numbers, names. Use **keyword** once for most important term."
    }}
  ]
}}

RULES:
- One update per date, sorted chronologically (oldest to newest)
- DATE: YYYY-MM-DD format from article publication date
- TITLE: Describe the event/development, be specific and newsworthy
- DESCRIPTION: Complete facts, include data/numbers/names, **bold** once, escape quotes with \\, no speculation
- STATUS: Overall outcome - "Justice" or "Injustice"
- Skip articles without meaningful new information

LAST UPDATE: {last_update_date}

ARTICLES:
{articles}"""


def resolve_cutoff(since: date | None, last_updated: str | None, *, default_days: int = 30) -> date:
    if since is not None:
        return since
    if last_updated:
        try:
            return date.fromisoformat(str(last_updated)[:10])
        except ValueError:
            logger.warning(f"Unparseable last_updated value {last_updated!r}; using default lookback")
    return datetime.now(timezone.utc).date() - timedelta(days=max(default_days, 1))


def published_after(results: list[SearchResult], cutoff: date) -> list[SearchResult]:
    kept: list[SearchResult] = []
    for result in results:
        if not result.published_date:
            continue
        try:
            published = date.fromisoformat(result.published_date[:10])
        except ValueError:
            continue
        if published > cutoff:
            kept.append(result)
    return kept


def normalize_updates(data: dict[str, Any], cutoff: date) -> UpdateAnalysis:
    """One update per date after the cutoff, oldest first; unknown statuses dropped."""
    status = data.get("status")
    status = status if status in VALID_STATUSES else ""

    by_date: dict[str, EventUpdate] = {}
    raw_updates = data.get("updates")
    for item in raw_updates if isinstance(raw_updates, list) else []:
        if not isinstance(item, dict):
            continue
        raw_date = str(item.get("date") or "").strip()
        title = str(item.get("title") or "").strip()
        description = str(item.get("description") or "").strip()
        if not (title and description):
            continue
        try:
            update_date = date.fromisoformat(raw_date[:10])
        except ValueError:
            continue
        if update_date <= cutoff:
            continue
        key = update_date.isoformat()
        if key in by_date:
            continue
        by_date[key] = EventUpdate(date=key, title=title, description=description)

    return UpdateAnalysis(status=status, updates=[by_date[key] for key in sorted(by_date)])


class UpdateAnalyzer:
    """Finds developments published since an event was last refreshed."""

    def __init__(
        self,
        store: EventStore,
        search_client: GoogleSearchClient,
        fetcher: ArticleFetcher,
        completion_client: CompletionClient,
        invalidator: CacheInvalidator,
        *,
        max_articles: int = 10,
        default_lookback_days: int = 30,
    ):
        self.store = store
        self.search_client = search_client
        self.fetcher = fetcher
        self.completion_client = completion_client
        self.invalidator = invalidator
        self.max_articles = max(int(max_articles), 1)
        self.default_lookback_days = max(int(default_lookback_days), 1)

    async def analyze(self, event_id: str, since: date | None = None) -> UpdateAnalysis:
        event = await self.store.fetch_event(event_id)
        cutoff = resolve_cutoff(since, event.last_updated, default_days=self.default_lookback_days)
        days_back = max((datetime.now(timezone.utc).date() - cutoff).days, 1)
        log_service.log_pipeline_stage(
            event_id, "updates_search", "started", cutoff=cutoff.isoformat()
        )

        results = await self.search_client.search(
            event.query,
            date_restrict=f"d{days_back}",
            sort="date",
        )
        recent = published_after(results, cutoff)[: self.max_articles]
        if not recent:
            logger.info(f"No articles published after {cutoff} for event {event_id}")
            return UpdateAnalysis()

        articles: list[ScrapedArticle] = await fetch_all(self.fetcher, [r.link for r in recent])
        full_content = {article.url: article.content for article in articles}

        prompt = build_update_prompt(event.query, recent, cutoff.isoformat(), full_content)
        completion = await self.completion_client.complete(
            UPDATES_SYSTEM_PROMPT, prompt, caller="update_analysis", event_id=event_id
        )
        if not completion.text or not completion.text.strip():
            raise EmptyCompletionError("No response content from the completion API")

        analysis = normalize_updates(parse_llm_json(completion.text), cutoff)
        log_service.log_pipeline_stage(
            event_id,
            "updates_extracted",
            "completed",
            outcome=analysis.status or None,
            updates=len(analysis.updates),
        )

        if analysis.updates:
            await self.store.save_event_updates(event_id, analysis.updates)
        if analysis.status:
            await self.store.update_event_status(event_id, analysis.status)
        if analysis.updates or analysis.status:
            await self.store.update_event_timestamp(event_id)
            await self.invalidator.invalidate(event_id)
        return analysis
