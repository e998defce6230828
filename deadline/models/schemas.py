from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel


# --- Requests ---


class DetailsRequest(BaseModel):
    event_id: str = ""
    api_key: str = ""


class UpdatesRequest(BaseModel):
    event_id: str = ""
    api_key: str = ""
    since: date | None = None


class RevalidateRequest(BaseModel):
    event_id: str = ""
    api_key: str = ""


# --- Responses ---


class AnalysisSummary(BaseModel):
    location: str
    accused_count: int
    victims_count: int
    timeline_events: int
    details_length: int
    total_content_analyzed: int


class DetailsSummaryResponse(BaseModel):
    success: bool = True
    message: str = "Event analyzed and saved successfully with detailed information"
    event_id: str
    event_title: str
    query_used: str
    articles_scraped: int
    images_found: int
    sources_analyzed: str
    analysis_summary: AnalysisSummary


class EventDetailsPayload(BaseModel):
    location: str
    details: str
    accused: list[str]
    victims: list[str]
    timeline: list[str]
    sources: list[str]
    images: list[str]


class DetailsResponse(BaseModel):
    success: bool = True
    event_id: str
    event_title: str
    query_used: str
    data: EventDetailsPayload
    articles_scraped: int
    images_found: int
    sources_analyzed: str
    details_length: int


class EventUpdatePayload(BaseModel):
    date: str
    title: str
    description: str


class UpdatesResponse(BaseModel):
    success: bool = True
    event_id: str
    has_new_updates: bool
    status: str
    updates: list[EventUpdatePayload]


class RevalidateResponse(BaseModel):
    success: bool
    message: str
    revalidated: bool
    timestamp: str


class TitleResponse(BaseModel):
    title: str


class EventsResponse(BaseModel):
    events: list[dict[str, Any]]
