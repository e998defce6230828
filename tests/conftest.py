from __future__ import annotations

import copy
from itertools import count
from types import SimpleNamespace
from typing import Any, Callable

import httpx
import pytest


class FakeQuery:
    """One chained supabase-py request against :class:`FakeSupabase`."""

    def __init__(self, db: FakeSupabase, table: str, operation: str, payload: Any = None, columns: str = "*"):
        self.db = db
        self.table = table
        self.operation = operation
        self.payload = payload
        self.columns = columns
        self.filters: list[tuple[str, Any]] = []
        self.orders: list[tuple[str, bool]] = []

    def eq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False, nullsfirst: bool | None = None) -> FakeQuery:
        self.orders.append((column, desc))
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(str(row.get(column)) == str(value) for column, value in self.filters)

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        if self.columns.strip() == "*":
            return dict(row)
        names = [name.strip() for name in self.columns.split(",")]
        return {name: row.get(name) for name in names}

    def _sorted(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        for column, desc in reversed(self.orders):
            present = [row for row in rows if row.get(column) is not None]
            missing = [row for row in rows if row.get(column) is None]
            rows = sorted(present, key=lambda row: row[column], reverse=desc) + missing
        return rows

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table, self.operation))
        if (self.table, self.operation) in self.db.failures:
            raise RuntimeError(f"{self.operation} on {self.table} failed")

        rows = self.db.tables.setdefault(self.table, [])
        if self.operation == "select":
            matched = [self._project(row) for row in rows if self._matches(row)]
            return SimpleNamespace(data=self._sorted(matched))
        if self.operation == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(copy.deepcopy(new_rows))
            return SimpleNamespace(data=copy.deepcopy(new_rows))
        if self.operation == "update":
            matched = [row for row in rows if self._matches(row)]
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=[dict(row) for row in matched])
        raise AssertionError(f"unsupported operation {self.operation}")


class FakeTable:
    def __init__(self, db: FakeSupabase, name: str):
        self.db = db
        self.name = name

    def select(self, columns: str = "*") -> FakeQuery:
        return FakeQuery(self.db, self.name, "select", columns=columns)

    def insert(self, payload: Any) -> FakeQuery:
        return FakeQuery(self.db, self.name, "insert", payload=payload)

    def update(self, payload: dict[str, Any]) -> FakeQuery:
        return FakeQuery(self.db, self.name, "update", payload=payload)


class FakeSupabase:
    """In-memory stand-in for the supabase ``Client`` query builder."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = copy.deepcopy(tables or {})
        self.failures: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase(
        {
            "events": [
                {
                    "event_id": "evt-1",
                    "query": "warehouse fire Springfield",
                    "title": "Springfield Warehouse Fire",
                    "last_updated": "2024-03-01T10:00:00+00:00",
                    "incident_date": "2024-02-20",
                },
                {
                    "event_id": "evt-2",
                    "query": "",
                    "title": "Untitled",
                    "last_updated": None,
                    "incident_date": None,
                },
            ],
        }
    )


@pytest.fixture
def clock() -> Callable[[], str]:
    ticks = count(1)
    return lambda: f"2024-03-10T00:00:{next(ticks):02d}+00:00"


def mock_http_client(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def article_html(body_text: str, *, title: str = "Headline") -> str:
    return (
        "<html><head>"
        f"<title>{title}</title>"
        "<script>var tracking = 'ignore me';</script>"
        "</head><body>"
        "<nav>Home News Sport</nav>"
        f"<article>{body_text}</article>"
        "<footer>Copyright footer</footer>"
        "</body></html>"
    )
