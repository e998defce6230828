from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from deadline.api.deps import get_http_client, get_pipeline
from deadline.models.schemas import EventsResponse, TitleResponse
from deadline.pipeline.controller import EventPipeline
from deadline.services.logger import logger
from deadline.tools.title_fetcher import fetch_source_title
from deadline.tools.web_utils import is_valid_url

router = APIRouter(prefix="/api/get", tags=["content"])


@router.get("/title", response_model=TitleResponse)
async def get_title(
    url: str | None = None,
    http_client: httpx.AsyncClient = Depends(get_http_client),
):
    """Display title for a source link."""
    if not url or not is_valid_url(url):
        raise HTTPException(status_code=400, detail="A valid http(s) URL is required")
    return TitleResponse(title=await fetch_source_title(http_client, url))


@router.get("/events", response_model=EventsResponse)
async def list_events(pipeline: EventPipeline = Depends(get_pipeline)):
    try:
        events = await pipeline.store.list_events()
    except Exception as exc:
        logger.error(f"Failed to list events: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch events", "details": str(exc)},
        )
    return EventsResponse(events=events)
