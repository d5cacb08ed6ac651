"""Paging policy for displaying a WorkItemTable in fixed-size windows."""

from __future__ import annotations

import math

from src.batch.table import WorkItemTable
from src.extraction.models import WorkItem


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size)


def page(table: WorkItemTable, page_size: int, page_number: int) -> list[WorkItem]:
    """Return the items on 1-based ``page_number``.

    The page number is not validated; callers clamp it with ``clamp_page``.
    """
    start = (page_number - 1) * page_size
    return list(table.items[start : start + page_size])


def absolute_index(page_number: int, page_size: int, visible_index: int) -> int:
    """Translate a row index on a page into an index into the whole table."""
    return (page_number - 1) * page_size + visible_index


def clamp_page(page_number: int, pages: int) -> int:
    return max(1, min(page_number, max(pages, 1)))
