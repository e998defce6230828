from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

from supabase import Client, create_client

from deadline.errors import ConfigurationError, EventNotFoundError, PersistenceError
from deadline.models.interfaces import EventDetails, EventRecord, EventUpdate
from deadline.services.logger import log_db_operation, logger

DETAIL_FIELDS = ("location", "details", "accused", "victims", "timeline", "sources", "images")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _execute(query: Any) -> Any:
    """Run blocking Supabase query execution in a worker thread."""
    return await asyncio.to_thread(query.execute)


class EventStore:
    """Read/write gateway over the ``events``, ``event_details`` and ``event_updates`` tables."""

    def __init__(
        self,
        client: Client | None = None,
        *,
        url: str = "",
        key: str = "",
        now: Callable[[], str] = _utc_now,
    ):
        self._client = client
        self._url = url
        self._key = key
        self._now = now

    def client(self) -> Client:
        if self._client is None:
            if not self._url or not self._key:
                raise ConfigurationError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")
            try:
                self._client = create_client(self._url, self._key)
            except Exception as exc:
                raise ConfigurationError(f"Invalid Supabase configuration: {exc}") from exc
        return self._client

    # --- Events ---

    async def fetch_event(self, event_id: str) -> EventRecord:
        table = self.client().table("events")
        try:
            result = await _execute(
                table.select("query, title, last_updated").eq("event_id", event_id)
            )
        except Exception as exc:
            log_db_operation("select", "events", event_id, error=str(exc))
            raise PersistenceError(f"Event fetch failed: {exc}") from exc

        rows = result.data or []
        if not rows:
            raise EventNotFoundError(f"Event not found: {event_id}")
        row = rows[0]
        query = (row.get("query") or "").strip()
        if not query:
            raise EventNotFoundError(f"Event {event_id} is missing a search query")

        return EventRecord(
            event_id=str(event_id),
            query=query,
            title=row.get("title") or "",
            last_updated=row.get("last_updated"),
        )

    async def list_events(self) -> list[dict[str, Any]]:
        table = self.client().table("events")
        try:
            result = await _execute(
                table.select("*")
                .order("incident_date", desc=True, nullsfirst=False)
                .order("last_updated", desc=True)
            )
        except Exception as exc:
            log_db_operation("select", "events", error=str(exc))
            raise PersistenceError(f"Failed to fetch events: {exc}") from exc
        return result.data or []

    async def update_event_timestamp(self, event_id: str) -> None:
        """Touch ``events.last_updated``; failures are logged only."""
        try:
            await _execute(
                self.client()
                .table("events")
                .update({"last_updated": self._now()})
                .eq("event_id", event_id)
            )
        except Exception as exc:
            logger.warning(f"Failed to update timestamp for event {event_id}: {exc}")
            return
        log_db_operation("touch", "events", event_id)

    async def update_event_status(self, event_id: str, status: str) -> None:
        table = self.client().table("events")
        try:
            await _execute(table.update({"status": status}).eq("event_id", event_id))
        except Exception as exc:
            log_db_operation("update", "events", event_id, error=str(exc))
            raise PersistenceError(f"Failed to update event status: {exc}") from exc

    # --- Event details ---

    async def save_event_details(self, event_id: str, details: EventDetails) -> None:
        """Insert the details row, or update it in place if one exists."""
        logger.info(
            f"Saving event details for {event_id}: "
            f"{len(details.sources)} sources, {len(details.images)} images"
        )
        table = self.client().table("event_details")
        payload = {name: getattr(details, name) for name in DETAIL_FIELDS}
        timestamp = self._now()

        try:
            existing = await _execute(table.select("event_id").eq("event_id", event_id))
            if existing.data:
                operation = "update"
                await _execute(
                    table.update({**payload, "updated_at": timestamp}).eq("event_id", event_id)
                )
            else:
                operation = "insert"
                await _execute(
                    table.insert(
                        {
                            "event_id": event_id,
                            **payload,
                            "created_at": timestamp,
                            "updated_at": timestamp,
                        }
                    )
                )
        except Exception as exc:
            log_db_operation("upsert", "event_details", event_id, error=str(exc))
            raise PersistenceError(f"Failed to save event details: {exc}") from exc

        log_db_operation(operation, "event_details", event_id)

    # --- Event updates ---

    async def save_event_updates(self, event_id: str, updates: list[EventUpdate]) -> int:
        """Insert updates whose date is not stored yet; returns the number inserted."""
        if not updates:
            return 0
        table = self.client().table("event_updates")
        try:
            existing = await _execute(table.select("date").eq("event_id", event_id))
            known_dates = {str(row.get("date"))[:10] for row in existing.data or []}
            timestamp = self._now()
            rows = [
                {
                    "event_id": event_id,
                    "date": update.date,
                    "title": update.title,
                    "description": update.description,
                    "created_at": timestamp,
                }
                for update in updates
                if update.date not in known_dates
            ]
            if rows:
                await _execute(table.insert(rows))
        except Exception as exc:
            log_db_operation("insert", "event_updates", event_id, error=str(exc))
            raise PersistenceError(f"Failed to save event updates: {exc}") from exc

        log_db_operation("insert", "event_updates", event_id, rows=len(rows))
        return len(rows)
