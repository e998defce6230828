from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from deadline.api.deps import get_api_secret, get_pipeline, require_api_key, require_event_id
from deadline.models.schemas import RevalidateRequest, RevalidateResponse
from deadline.pipeline.controller import EventPipeline

router = APIRouter(prefix="/api/revalidate", tags=["cache"])


async def _revalidate(pipeline: EventPipeline, event_id: str) -> RevalidateResponse:
    revalidated = await pipeline.invalidator.invalidate(event_id)
    return RevalidateResponse(
        success=revalidated,
        message=(
            f"Cache revalidated for event {event_id}"
            if revalidated
            else f"Cache revalidation failed for event {event_id}"
        ),
        revalidated=revalidated,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("", response_model=RevalidateResponse)
async def revalidate_get(
    event_id: str | None = None,
    api_key: str | None = None,
    pipeline: EventPipeline = Depends(get_pipeline),
    secret: str = Depends(get_api_secret),
):
    require_api_key(api_key, secret)
    return await _revalidate(pipeline, require_event_id(event_id))


@router.post("", response_model=RevalidateResponse)
async def revalidate_post(
    request: RevalidateRequest,
    pipeline: EventPipeline = Depends(get_pipeline),
    secret: str = Depends(get_api_secret),
):
    require_api_key(request.api_key, secret)
    return await _revalidate(pipeline, require_event_id(request.event_id))
