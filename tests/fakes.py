"""In-memory stand-ins for the extraction service, record store, and URL resolver."""

from __future__ import annotations

import asyncio
from typing import Any

from src.batch.table import WorkItemTable
from src.extraction.models import ExtractionResult, WorkItem
from src.extraction.url_resolver import UrlResolutionError
from src.storage.record_store import StoreError


class FakeExtractionService:
    """Returns canned fields per URL; a URL mapped to an Exception raises it."""

    def __init__(self, responses: dict[str, Any] | None = None, delay: float = 0.0) -> None:
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def extract(self, url: str) -> ExtractionResult:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses.get(url, {"name": f"Event at {url}"})
            if isinstance(response, Exception):
                raise response
            return ExtractionResult(fields=response, raw_text=f"# {url}")
        finally:
            self.in_flight -= 1


class FakeRecordStore:
    """Records upserted rows; raises StoreError when ``error`` is set."""

    def __init__(self, error: dict[str, Any] | None = None) -> None:
        self.error = error
        self.calls: list[tuple[list[dict[str, Any]], str]] = []

    def upsert(self, rows: list[dict[str, Any]], on_conflict: str = "url") -> int:
        self.calls.append((rows, on_conflict))
        if self.error is not None:
            raise StoreError(self.error)
        return len(rows)


class FakeResolver:
    def __init__(self, mapping: dict[str, str], delay: float = 0.0) -> None:
        self.mapping = mapping
        self.delay = delay

    async def resolve(self, url: str) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if url not in self.mapping:
            raise UrlResolutionError(f"Unable to extract event URL from {url}")
        return self.mapping[url]


def make_table(*urls: str, checked: bool = True) -> WorkItemTable:
    return WorkItemTable.of(WorkItem(url=u, checked=checked) for u in urls)
