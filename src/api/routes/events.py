"""Direct save endpoint: upsert already-extracted events without a batch session."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from src.api.models import SaveEventsRequest, SaveEventsResponse
from src.batch.persistence import PersistenceGateway
from src.extraction.models import ItemStatus, WorkItem
from src.extraction.normalize import ExtractionError, normalize_fields
from src.storage.record_store import StoreError, SupabaseRecordStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_item(event: dict[str, Any]) -> WorkItem:
    url = event.get("url")
    if not url:
        raise HTTPException(status_code=400, detail="Every event needs a url")
    try:
        record = normalize_fields(event)
    except ExtractionError as exc:
        raise HTTPException(status_code=400, detail=f"{url}: {exc}") from exc
    return WorkItem(
        url=str(url),
        status=ItemStatus.DONE,
        result=record,
        raw_text=str(event.get("event_markdown") or ""),
        checked=True,
    )


@router.post("/api/events/save", response_model=SaveEventsResponse)
async def save_events(body: SaveEventsRequest) -> SaveEventsResponse:
    """Normalize and upsert a list of event dicts keyed on ``url``."""
    if not body.events:
        raise HTTPException(status_code=400, detail="Invalid events data")

    items = [_to_item(event) for event in body.events]
    gateway = PersistenceGateway(SupabaseRecordStore())
    try:
        saved = gateway.save(items)
    except StoreError as exc:
        raise HTTPException(
            status_code=502,
            detail={"error": "Failed to save events", "details": exc.payload},
        ) from exc

    return SaveEventsResponse(
        message=f"Events saved successfully. Saved {saved} events.",
        saved=saved,
    )
