"""Data models for event extraction results and batch work items."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any

Scalar = str | int | float | bool
StringList = list[str]
StructuredObject = dict[str, Any] | list[Any]


class FieldKind(StrEnum):
    """Shape category of a StructuredRecord field."""

    SCALAR = "scalar"
    LIST = "list"
    OBJECT = "object"


class ItemStatus(StrEnum):
    """Lifecycle of a WorkItem."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    SENT_TO_DB = "sent_to_db"
    FAILED = "failed"


class UrlItemStatus(StrEnum):
    """Lifecycle of a listing-page URL awaiting resolution."""

    UPLOADED = "uploaded"
    EXTRACTED = "extracted"
    FORWARDED = "forwarded"
    FAILED = "failed"


@dataclass(frozen=True)
class StructuredRecord:
    """A normalized event record.

    Every field is optional except ``name``; ``None`` means the service did
    not report the field, which is distinct from an empty list.
    """

    name: str
    description: Scalar | None = None
    start_date: Scalar | None = None
    end_date: Scalar | None = None
    city: Scalar | None = None
    state: Scalar | None = None
    country: Scalar | None = None
    attendee_count: Scalar | None = None
    topics: StringList | None = None
    event_type: Scalar | None = None
    attendee_title: StringList | None = None
    logo_url: Scalar | None = None
    sponsorship_options: StructuredObject | Scalar | None = None
    agenda: StructuredObject | Scalar | None = None
    audience_insights: StructuredObject | Scalar | None = None
    sponsors: StringList | None = None
    hosting_company: StructuredObject | Scalar | None = None
    ticket_cost: Scalar | None = None
    contact_email: Scalar | None = None

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


LIST_FIELDS: frozenset[str] = frozenset({"topics", "attendee_title", "sponsors"})
OBJECT_FIELDS: frozenset[str] = frozenset(
    {"sponsorship_options", "agenda", "audience_insights", "hosting_company"}
)
RECORD_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(StructuredRecord))

FIELD_KINDS: dict[str, FieldKind] = {
    name: (
        FieldKind.LIST
        if name in LIST_FIELDS
        else FieldKind.OBJECT
        if name in OBJECT_FIELDS
        else FieldKind.SCALAR
    )
    for name in RECORD_FIELDS
}


@dataclass(frozen=True)
class ExtractionFailure:
    """Error descriptor stored on a failed WorkItem in place of a record."""

    message: str


@dataclass(frozen=True)
class ExtractionResult:
    """Raw output of an extraction service call, before normalization."""

    fields: dict[str, Any]
    raw_text: str = ""


@dataclass(frozen=True)
class WorkItem:
    """One row of the extraction table, keyed by source URL."""

    url: str
    status: ItemStatus = ItemStatus.NOT_STARTED
    result: StructuredRecord | ExtractionFailure | None = None
    raw_text: str = ""
    checked: bool = False

    @property
    def record(self) -> StructuredRecord | None:
        return self.result if isinstance(self.result, StructuredRecord) else None

    @property
    def error(self) -> str | None:
        return self.result.message if isinstance(self.result, ExtractionFailure) else None


@dataclass(frozen=True)
class ExtractedUrlItem:
    """A listing-page URL and the event URL resolved from it."""

    original_url: str
    derived_url: str | None = None
    status: UrlItemStatus = UrlItemStatus.UPLOADED
    error: str | None = field(default=None, compare=False)
