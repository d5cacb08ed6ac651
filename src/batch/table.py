"""WorkItem table: immutable snapshots and the per-item state machine."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

from src.extraction.models import (
    ExtractionFailure,
    ItemStatus,
    StructuredRecord,
    WorkItem,
)

ALLOWED_TRANSITIONS: dict[ItemStatus, frozenset[ItemStatus]] = {
    ItemStatus.NOT_STARTED: frozenset({ItemStatus.IN_PROGRESS}),
    ItemStatus.IN_PROGRESS: frozenset({ItemStatus.DONE, ItemStatus.FAILED}),
    ItemStatus.DONE: frozenset({ItemStatus.SENT_TO_DB}),
    ItemStatus.SENT_TO_DB: frozenset(),
    ItemStatus.FAILED: frozenset(),
}


class InvalidTransitionError(Exception):
    """Raised when a WorkItem is asked to move to a state it cannot reach."""

    def __init__(self, item: WorkItem, target: ItemStatus) -> None:
        super().__init__(f"Cannot move {item.url} from {item.status} to {target}")
        self.url = item.url
        self.source = item.status
        self.target = target


def _check(item: WorkItem, target: ItemStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[item.status]:
        raise InvalidTransitionError(item, target)


def mark_in_progress(item: WorkItem) -> WorkItem:
    _check(item, ItemStatus.IN_PROGRESS)
    if not item.checked:
        raise InvalidTransitionError(item, ItemStatus.IN_PROGRESS)
    return replace(item, status=ItemStatus.IN_PROGRESS)


def mark_done(item: WorkItem, record: StructuredRecord, raw_text: str) -> WorkItem:
    _check(item, ItemStatus.DONE)
    return replace(item, status=ItemStatus.DONE, result=record, raw_text=raw_text)


def mark_failed(item: WorkItem, message: str) -> WorkItem:
    _check(item, ItemStatus.FAILED)
    return replace(item, status=ItemStatus.FAILED, result=ExtractionFailure(message))


def mark_sent(item: WorkItem) -> WorkItem:
    _check(item, ItemStatus.SENT_TO_DB)
    return replace(item, status=ItemStatus.SENT_TO_DB)


@dataclass(frozen=True)
class WorkItemTable:
    """Ordered, immutable collection of WorkItems.

    Every mutation returns a new table so a concurrent reader never observes
    a half-written item.
    """

    items: tuple[WorkItem, ...] = ()

    @classmethod
    def of(cls, items: Iterable[WorkItem]) -> WorkItemTable:
        return cls(tuple(items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[WorkItem]:
        return iter(self.items)

    def __getitem__(self, index: int) -> WorkItem:
        return self.items[index]

    def with_item(self, index: int, item: WorkItem) -> WorkItemTable:
        if not 0 <= index < len(self.items):
            raise IndexError(f"WorkItem index {index} out of range")
        return WorkItemTable(self.items[:index] + (item,) + self.items[index + 1 :])

    def index_of(self, url: str) -> int | None:
        for i, item in enumerate(self.items):
            if item.url == url:
                return i
        return None

    def merge(self, incoming: Iterable[WorkItem]) -> WorkItemTable:
        """Append items, replacing any existing row with the same URL in place."""
        rows = list(self.items)
        positions = {item.url: i for i, item in enumerate(rows)}
        for item in incoming:
            pos = positions.get(item.url)
            if pos is None:
                positions[item.url] = len(rows)
                rows.append(item)
            else:
                rows[pos] = item
        return WorkItemTable(tuple(rows))

    def with_status(self, *statuses: ItemStatus) -> list[WorkItem]:
        return [item for item in self.items if item.status in statuses]

    def counts(self) -> dict[str, int]:
        totals = {status.value: 0 for status in ItemStatus}
        for item in self.items:
            totals[item.status.value] += 1
        return totals
