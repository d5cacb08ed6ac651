"""Pydantic request/response schemas for the Event Harvest API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from src.batch.outcome import Outcome
from src.extraction.models import ExtractedUrlItem, ItemStatus, UrlItemStatus, WorkItem


class ExtractRequest(BaseModel):
    """Request body for the single-URL extraction endpoints."""

    url: str


class ExtractResponse(BaseModel):
    """Normalized event fields plus the page text they were extracted from."""

    event: dict[str, Any]
    raw_text: str = ""


class ExtractUrlResponse(BaseModel):
    extracted_url: str


class SaveEventsRequest(BaseModel):
    """Request body for /api/events/save: raw event dicts, each with a ``url``."""

    events: list[dict[str, Any]]


class SaveEventsResponse(BaseModel):
    message: str
    saved: int


class WorkItemView(BaseModel):
    """One table row as shown to the operator."""

    index: int
    url: str
    status: ItemStatus
    checked: bool
    event: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def from_item(cls, index: int, item: WorkItem) -> WorkItemView:
        return cls(
            index=index,
            url=item.url,
            status=item.status,
            checked=item.checked,
            event=item.record.to_dict() if item.record is not None else None,
            error=item.error,
        )


class PageResponse(BaseModel):
    """A window over the batch table plus table-wide counters."""

    items: list[WorkItemView]
    page: int
    page_size: int
    page_count: int
    total: int
    eligible_count: int
    all_checked: bool
    running: bool
    counts: dict[str, int]


class ImportResponse(BaseModel):
    imported: int
    total: int


class ToggleResponse(BaseModel):
    index: int
    checked: bool


class ToggleAllResponse(BaseModel):
    checked: bool


class RunResponse(BaseModel):
    outcome: Outcome
    done: int = 0
    failed: int = 0
    message: str


class CancelResponse(BaseModel):
    cancelled: bool


class SaveResponse(BaseModel):
    outcome: Outcome
    saved: int = 0
    message: str


class UrlItemView(BaseModel):
    original_url: str
    derived_url: str | None = None
    status: UrlItemStatus
    error: str | None = None

    @classmethod
    def from_item(cls, item: ExtractedUrlItem) -> UrlItemView:
        return cls(
            original_url=item.original_url,
            derived_url=item.derived_url,
            status=item.status,
            error=item.error,
        )


class UrlItemsResponse(BaseModel):
    items: list[UrlItemView]


class ForwardResponse(BaseModel):
    forwarded: int
    total: int
