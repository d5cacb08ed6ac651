"""Coercion of extraction-service output into a StructuredRecord.

The service's output shape is not contractually fixed: a list-like field may
come back as a bare string, an object-like field as a string, and so on.
``normalize_fields`` is the one place where those shapes are reconciled.
"""

from __future__ import annotations

import json
from typing import Any

from src.extraction.models import (
    FIELD_KINDS,
    FieldKind,
    StructuredRecord,
)

# Long-form keys the service sometimes returns instead of the canonical ones.
FIELD_ALIASES: dict[str, str] = {
    "topics_or_themes": "topics",
    "typical_attendee_titles_or_roles": "attendee_title",
    "event_agenda_or_schedule": "agenda",
    "audience_insights_or_demographics": "audience_insights",
    "sponsoring_companies": "sponsors",
    "hosting_company_or_organization": "hosting_company",
}


class ExtractionError(Exception):
    """Raised when an extraction call fails or returns an unusable result."""


class MissingFieldError(ExtractionError):
    """Raised when a required field is absent from an extraction result."""


def canonical_json(value: Any) -> str:
    """Encode a structured value as the canonical string used on the wire."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def coerce_list(value: Any) -> list[str] | None:
    """Coerce a list-like field to ``list[str]`` or ``None``.

    The rule is type-based: a string becomes a one-element list and is never
    split on its content. An empty string counts as absent.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value else None
    if isinstance(value, list):
        return [v if isinstance(v, str) else canonical_json(v) for v in value]
    if isinstance(value, dict):
        return [canonical_json(value)]
    return [str(value)]


def coerce_object(value: Any) -> Any:
    """Keep structured values as-is; scalars pass through unchanged."""
    return value


def coerce_scalar(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return canonical_json(value)
    return value


_COERCERS = {
    FieldKind.SCALAR: coerce_scalar,
    FieldKind.LIST: coerce_list,
    FieldKind.OBJECT: coerce_object,
}


def reconcile_aliases(raw: dict[str, Any]) -> dict[str, Any]:
    """Map alias keys onto canonical names and drop unknown keys.

    A canonical key present in ``raw`` always wins over its alias.
    """
    merged: dict[str, Any] = {}
    for key, value in raw.items():
        canonical = FIELD_ALIASES.get(key)
        if canonical is not None and canonical not in raw:
            merged[canonical] = value
    for key, value in raw.items():
        if key in FIELD_KINDS:
            merged[key] = value
    return merged


def normalize_fields(raw: dict[str, Any]) -> StructuredRecord:
    """Build a StructuredRecord from a raw field mapping.

    Raises:
        MissingFieldError: If ``name`` is absent or empty.
    """
    data = reconcile_aliases(raw)

    name = data.get("name")
    if name is None or (isinstance(name, str) and not name.strip()):
        raise MissingFieldError("Extraction result is missing required field 'name'")

    values: dict[str, Any] = {}
    for key, kind in FIELD_KINDS.items():
        values[key] = _COERCERS[kind](data.get(key))

    values["name"] = str(values["name"])

    # Single-day events: downstream consumers need a non-null end date.
    if values["end_date"] in (None, ""):
        values["end_date"] = values["start_date"]

    return StructuredRecord(**values)
