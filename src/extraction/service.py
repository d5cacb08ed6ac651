"""Extraction service interface, shared event schema, and backend selection."""

from __future__ import annotations

from typing import Any, Protocol

from src.extraction.models import ExtractionResult
from src.pipeline_config import ExtractionBackend

# JSON schema of the fields requested from every extraction backend.
EVENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "start_date": {"type": "string"},
        "end_date": {"type": "string"},
        "city": {"type": "string"},
        "state": {"type": "string"},
        "country": {"type": "string"},
        "attendee_count": {"type": ["number", "string"]},
        "topics": {"type": "array", "items": {"type": "string"}},
        "event_type": {"type": "string"},
        "attendee_title": {"type": "string"},
        "logo_url": {"type": "string"},
        "sponsorship_options": {"type": ["string", "object"]},
        "agenda": {"type": ["string", "object"]},
        "audience_insights": {"type": ["string", "object"]},
        "sponsors": {"type": ["array", "object"], "items": {"type": "string"}},
        "hosting_company": {"type": ["string", "object"]},
        "ticket_cost": {"type": "string"},
        "contact_email": {"type": "string"},
    },
    "required": ["name", "start_date"],
}

EXTRACTION_PROMPT = (
    "Extract detailed event information including:\n"
    "- name\n"
    "- description\n"
    "- start date\n"
    "- end date\n"
    "- city\n"
    "- state (full state name)\n"
    "- country\n"
    "- attendee count\n"
    "- topics or themes that will be discussed at the event\n"
    "- event type: choose between conference, workshop, roundtable\n"
    "- titles of attendees attending the event\n"
    "- logo URL\n"
    "- sponsorship options (not ticket prices)\n"
    "- event agenda or schedule\n"
    "- demographics of attendees\n"
    "- companies sponsoring the event, also called partners or exhibitors "
    "(company names only)\n"
    "- hosting company or organization\n"
    "- contact email\n"
    "- cost of a ticket to attend\n"
    "Provide as much detail as possible for each field. Don't make anything up. "
    "Only use information found on the page. If you don't know a value, leave it blank."
)


class ExtractionService(Protocol):
    """Remote capability that turns a URL into raw event fields plus page text.

    Implementations raise ``ExtractionError`` on any failure.
    """

    async def extract(self, url: str) -> ExtractionResult: ...


def get_extraction_service(backend: str | ExtractionBackend) -> ExtractionService:
    """Return the extraction service for ``backend``."""
    if isinstance(backend, str):
        backend = ExtractionBackend(backend)

    if backend is ExtractionBackend.CLAUDE:
        from src.extraction.extractor import ClaudeExtractionService

        return ClaudeExtractionService()

    from src.extraction.firecrawl import FirecrawlExtractionService

    return FirecrawlExtractionService()
