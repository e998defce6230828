from __future__ import annotations

import hmac

import httpx
from fastapi import HTTPException, Request

from deadline.config import settings
from deadline.pipeline.controller import EventPipeline


def get_pipeline(request: Request) -> EventPipeline:
    """The pipeline built by the app lifespan."""
    return request.app.state.pipeline


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_api_secret() -> str:
    return settings.api_secret_key


def require_api_key(api_key: str | None, secret: str) -> None:
    """Reject the request unless ``api_key`` matches the configured secret."""
    if not secret or not api_key or not hmac.compare_digest(api_key, secret):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def require_event_id(event_id: str | None) -> str:
    event_id = (event_id or "").strip()
    if not event_id:
        raise HTTPException(status_code=400, detail="Event ID is required")
    return event_id
