"""Persistence gateway: de-duplicate, serialize, and upsert completed items."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from src.batch.outcome import Outcome
from src.batch.selection import is_saveable
from src.batch.table import WorkItemTable, mark_sent
from src.extraction.models import LIST_FIELDS, OBJECT_FIELDS, RECORD_FIELDS, WorkItem
from src.extraction.normalize import canonical_json
from src.storage.record_store import RecordStore

logger = logging.getLogger(__name__)

KEY_FIELD = "url"


@dataclass(frozen=True)
class SaveResult:
    table: WorkItemTable
    outcome: Outcome
    saved: int = 0


def dedupe_by_url(items: list[WorkItem]) -> list[WorkItem]:
    """Keep one item per URL; the later item in iteration order wins."""
    latest: dict[str, WorkItem] = {}
    for item in items:
        latest.pop(item.url, None)
        latest[item.url] = item
    return list(latest.values())


def to_row(item: WorkItem) -> dict[str, Any]:
    """Serialize a completed WorkItem into a wire row for the record store."""
    record = item.record
    if record is None:
        raise ValueError(f"WorkItem {item.url} has no extracted record")

    row: dict[str, Any] = {}
    for name in RECORD_FIELDS:
        value = getattr(record, name)
        if name in OBJECT_FIELDS and isinstance(value, (dict, list)):
            value = canonical_json(value)
        elif name in LIST_FIELDS and value is not None:
            value = list(value)
        row[name] = value
    row[KEY_FIELD] = item.url
    row["event_markdown"] = item.raw_text
    return row


class PersistenceGateway:
    """Writes completed WorkItems to a RecordStore keyed on URL."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def save(self, items: list[WorkItem]) -> int:
        """Upsert ``items`` and return the number of rows saved.

        The store's ``StoreError`` propagates unchanged; nothing is retried.
        """
        rows = [to_row(item) for item in dedupe_by_url(items)]
        if not rows:
            return 0
        saved = self._store.upsert(rows, on_conflict=KEY_FIELD)
        logger.info("Saved %d events to the database", saved)
        return saved

    def save_checked(self, table: WorkItemTable) -> SaveResult:
        """Save every checked ``done`` item and mark the saved ones ``sent_to_db``.

        On a store failure no item changes status. Rows from earlier upsert
        batches may already be written; re-saving is safe because the upsert
        overwrites by key.
        """
        items = [item for item in table if is_saveable(item)]
        if not items:
            return SaveResult(table=table, outcome=Outcome.NOTHING_TO_DO)

        saved = self.save(items)

        updated = WorkItemTable.of(mark_sent(item) if is_saveable(item) else item for item in table)
        return SaveResult(table=updated, outcome=Outcome.COMPLETED, saved=saved)
