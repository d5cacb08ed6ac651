"""Single-URL endpoints: extract one event, resolve one listing page."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.api.models import ExtractRequest, ExtractResponse, ExtractUrlResponse
from src.config import settings
from src.extraction.normalize import ExtractionError, normalize_fields
from src.extraction.service import get_extraction_service
from src.extraction.url_resolver import HttpUrlResolver, UrlResolutionError

router = APIRouter()


@router.post("/api/extract", response_model=ExtractResponse)
async def extract_event(body: ExtractRequest) -> ExtractResponse:
    """Run the configured extraction service on one URL and normalize the result."""
    if not body.url:
        raise HTTPException(status_code=400, detail="URL is required")

    service = get_extraction_service(settings.extraction_backend)
    try:
        result = await service.extract(body.url)
        record = normalize_fields(result.fields)
    except ExtractionError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to extract event: {exc}") from exc

    return ExtractResponse(event={**record.to_dict(), "url": body.url}, raw_text=result.raw_text)


@router.post("/api/extract-url", response_model=ExtractUrlResponse)
async def extract_url(body: ExtractRequest) -> ExtractUrlResponse:
    """Resolve an events-directory listing page to the event's own site."""
    if not body.url:
        raise HTTPException(status_code=400, detail="URL is required")

    try:
        derived = await HttpUrlResolver().resolve(body.url)
    except UrlResolutionError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ExtractUrlResponse(extracted_url=derived)
