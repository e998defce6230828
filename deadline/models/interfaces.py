from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(slots=True)
class SearchResult:
    title: str
    link: str
    snippet: str
    display_link: str = ""
    published_date: str | None = None


@dataclass(slots=True)
class ScrapedArticle:
    url: str
    title: str
    content: str
    source: str
    publish_date: str = ""
    author: str = ""


@dataclass(slots=True)
class ScrapedData:
    results: list[SearchResult] = field(default_factory=list)
    articles: list[ScrapedArticle] = field(default_factory=list)
    images: list[str] = field(default_factory=list)


@dataclass(slots=True)
class EventDetails:
    location: str = ""
    details: str = ""
    accused: list[str] = field(default_factory=list)
    victims: list[str] = field(default_factory=list)
    timeline: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class EventRecord:
    event_id: str
    query: str
    title: str = ""
    last_updated: str | None = None


@dataclass(slots=True)
class EventUpdate:
    date: str
    title: str
    description: str


@dataclass(slots=True)
class UpdateAnalysis:
    status: str = ""
    updates: list[EventUpdate] = field(default_factory=list)

    @property
    def has_new_updates(self) -> bool:
        return bool(self.updates)


@dataclass(slots=True)
class PipelineResult:
    event: EventRecord
    details: EventDetails
    scraped: ScrapedData
