"""Selection bookkeeping over a WorkItemTable."""

from __future__ import annotations

from dataclasses import replace

from src.batch.table import WorkItemTable
from src.extraction.models import ItemStatus, WorkItem


def toggle(table: WorkItemTable, index: int) -> WorkItemTable:
    """Flip the ``checked`` flag of the item at absolute ``index``."""
    item = table[index]
    return table.with_item(index, replace(item, checked=not item.checked))


def all_checked(table: WorkItemTable) -> bool:
    return len(table) > 0 and all(item.checked for item in table)


def toggle_all(table: WorkItemTable) -> WorkItemTable:
    """Check every item unless all are already checked, in which case uncheck all."""
    target = not all_checked(table)
    return WorkItemTable.of(replace(item, checked=target) for item in table)


def is_extractable(item: WorkItem) -> bool:
    return item.checked and item.status is ItemStatus.NOT_STARTED


def is_saveable(item: WorkItem) -> bool:
    return item.checked and item.status is ItemStatus.DONE


def eligible_count(table: WorkItemTable) -> int:
    """Number of items the next batch run would process."""
    return sum(1 for item in table if is_extractable(item))
