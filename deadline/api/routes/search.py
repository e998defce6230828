from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from deadline.api.deps import get_api_secret, get_pipeline, require_api_key, require_event_id
from deadline.errors import EventNotFoundError, PipelineError
from deadline.models.interfaces import PipelineResult
from deadline.models.schemas import (
    AnalysisSummary,
    DetailsRequest,
    DetailsResponse,
    DetailsSummaryResponse,
    EventDetailsPayload,
    EventUpdatePayload,
    UpdatesRequest,
    UpdatesResponse,
)
from deadline.pipeline.controller import EventPipeline
from deadline.services import logger as log_service
from deadline.services.logger import logger

router = APIRouter(prefix="/api/search", tags=["search"])


def pipeline_error_response(exc: Exception, message: str) -> JSONResponse:
    if isinstance(exc, EventNotFoundError):
        return JSONResponse(status_code=404, content={"error": "Event not found", "details": str(exc)})
    if isinstance(exc, PipelineError):
        logger.error(f"{message}: {exc}")
    else:
        logger.exception(f"{message}: unexpected {type(exc).__name__}")
    return JSONResponse(status_code=500, content={"error": message, "details": str(exc)})


def _sources_analyzed(result: PipelineResult) -> str:
    seen: dict[str, None] = {}
    for article in result.scraped.articles:
        seen.setdefault(article.source, None)
    return ", ".join(seen)


async def _run_details(pipeline: EventPipeline, event_id: str) -> PipelineResult:
    log_service.log_pipeline_stage(event_id, "requested", "started", source="api")
    return await pipeline.process_event(event_id)


@router.get("/details", response_model=DetailsSummaryResponse)
async def analyze_event_summary(
    event_id: str | None = None,
    api_key: str | None = None,
    pipeline: EventPipeline = Depends(get_pipeline),
    secret: str = Depends(get_api_secret),
):
    """Run the pipeline for one event and return counts only."""
    require_api_key(api_key, secret)
    event_id = require_event_id(event_id)
    try:
        result = await _run_details(pipeline, event_id)
    except Exception as exc:
        return pipeline_error_response(exc, "Internal server error during detailed event analysis")

    details = result.details
    return DetailsSummaryResponse(
        event_id=event_id,
        event_title=result.event.title,
        query_used=result.event.query,
        articles_scraped=len(details.sources),
        images_found=len(details.images),
        sources_analyzed=_sources_analyzed(result),
        analysis_summary=AnalysisSummary(
            location=details.location,
            accused_count=len(details.accused),
            victims_count=len(details.victims),
            timeline_events=len(details.timeline),
            details_length=len(details.details),
            total_content_analyzed=sum(len(a.content) for a in result.scraped.articles),
        ),
    )


@router.post("/details", response_model=DetailsResponse)
async def analyze_event(
    request: DetailsRequest,
    pipeline: EventPipeline = Depends(get_pipeline),
    secret: str = Depends(get_api_secret),
):
    """Run the pipeline for one event and return the stored details."""
    require_api_key(request.api_key, secret)
    event_id = require_event_id(request.event_id)
    try:
        result = await _run_details(pipeline, event_id)
    except Exception as exc:
        return pipeline_error_response(exc, "Internal server error during detailed event analysis")

    details = result.details
    return DetailsResponse(
        event_id=event_id,
        event_title=result.event.title,
        query_used=result.event.query,
        data=EventDetailsPayload(**details.to_dict()),
        articles_scraped=len(details.sources),
        images_found=len(details.images),
        sources_analyzed=_sources_analyzed(result),
        details_length=len(details.details),
    )


@router.post("/updates", response_model=UpdatesResponse)
async def analyze_updates(
    request: UpdatesRequest,
    pipeline: EventPipeline = Depends(get_pipeline),
    secret: str = Depends(get_api_secret),
):
    """Look for developments published since the event was last refreshed."""
    require_api_key(request.api_key, secret)
    event_id = require_event_id(request.event_id)
    try:
        analysis = await pipeline.analyze_updates(event_id, request.since)
    except Exception as exc:
        return pipeline_error_response(exc, "Internal server error during update analysis")

    return UpdatesResponse(
        event_id=event_id,
        has_new_updates=analysis.has_new_updates,
        status=analysis.status,
        updates=[
            EventUpdatePayload(date=u.date, title=u.title, description=u.description)
            for u in analysis.updates
        ],
    )
