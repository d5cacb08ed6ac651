"""Listing-page URLs: resolve each to an event URL, then forward into the WorkItem table."""

from __future__ import annotations

import logging
from dataclasses import replace

from src.batch.csv_codec import parse_urls
from src.batch.table import WorkItemTable
from src.extraction.models import ExtractedUrlItem, UrlItemStatus, WorkItem
from src.extraction.url_resolver import UrlResolutionError, UrlResolver

logger = logging.getLogger(__name__)


def uploaded_urls(content: str, column: int | None = 1) -> list[ExtractedUrlItem]:
    return [ExtractedUrlItem(original_url=url) for url in parse_urls(content, column)]


async def resolve_all(
    items: list[ExtractedUrlItem], resolver: UrlResolver
) -> list[ExtractedUrlItem]:
    """Resolve every ``uploaded`` item one at a time; other items are left alone."""
    resolved: list[ExtractedUrlItem] = []
    for item in items:
        if item.status is not UrlItemStatus.UPLOADED:
            resolved.append(item)
            continue
        try:
            derived = await resolver.resolve(item.original_url)
        except UrlResolutionError as exc:
            resolved.append(replace(item, status=UrlItemStatus.FAILED, error=str(exc)))
            continue
        logger.info("Resolved %s -> %s", item.original_url, derived)
        resolved.append(replace(item, derived_url=derived, status=UrlItemStatus.EXTRACTED))
    return resolved


def forward(
    items: list[ExtractedUrlItem], table: WorkItemTable
) -> tuple[list[ExtractedUrlItem], WorkItemTable, int]:
    """Copy every ``extracted`` item's derived URL into ``table`` as a fresh WorkItem.

    Returns the updated URL items (forwarded ones marked ``forwarded``), the
    new table, and how many URLs were forwarded.
    """
    forwarded: list[WorkItem] = []
    updated: list[ExtractedUrlItem] = []
    for item in items:
        if item.status is UrlItemStatus.EXTRACTED and item.derived_url:
            forwarded.append(WorkItem(url=item.derived_url))
            updated.append(replace(item, status=UrlItemStatus.FORWARDED))
        else:
            updated.append(item)
    return updated, table.merge(forwarded), len(forwarded)
