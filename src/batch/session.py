"""BatchSession: one operator's WorkItem table and the operations on it."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from src.batch import csv_codec, pager, selection, url_forwarding
from src.batch.outcome import Outcome
from src.batch.persistence import PersistenceGateway, SaveResult
from src.batch.processor import BatchProcessor, BatchRunResult, CancellationToken
from src.batch.table import WorkItemTable
from src.extraction.models import ExtractedUrlItem, WorkItem
from src.extraction.url_resolver import UrlResolver
from src.pipeline_config import BatchConfig

logger = logging.getLogger(__name__)


class SessionBusyError(Exception):
    """Raised when the table is modified while a batch run is in progress."""


class BatchSession:
    """Owns a WorkItemTable and the listing-URL table feeding it.

    The session is the only writer of ``table``; readers always see a
    complete snapshot.
    """

    def __init__(
        self,
        processor: BatchProcessor,
        gateway: PersistenceGateway,
        resolver: UrlResolver,
        config: BatchConfig | None = None,
    ) -> None:
        self.config = config or BatchConfig()
        self.table = WorkItemTable()
        self.url_items: list[ExtractedUrlItem] = []
        self._processor = processor
        self._gateway = gateway
        self._resolver = resolver
        self._cancel: CancellationToken | None = None
        self._resolving = False

    @property
    def running(self) -> bool:
        return self._cancel is not None

    def _ensure_idle(self) -> None:
        if self.running:
            raise SessionBusyError("A batch extraction is in progress")

    def _ensure_listing_idle(self) -> None:
        if self._resolving:
            raise SessionBusyError("Listing pages are being resolved")

    def _set_table(self, table: WorkItemTable) -> None:
        self.table = table

    def _column(self, column: int | None) -> int | None:
        # None falls back to the configured column; a negative index means "first non-empty cell".
        if column is None:
            return self.config.csv_url_column
        return column if column >= 0 else None

    # -- work items ----------------------------------------------------------

    def import_csv(self, content: str, column: int | None = None) -> int:
        """Import URLs from CSV text; return how many rows the file contributed."""
        self._ensure_idle()
        col = self._column(column)
        before = len(self.table)
        self.table = csv_codec.import_csv(self.table, content, col)
        logger.info("Imported CSV: table grew from %d to %d items", before, len(self.table))
        return len(csv_codec.parse_urls(content, col))

    def page(self, page_number: int, page_size: int | None = None) -> tuple[list[WorkItem], int, int]:
        """Return ``(items, clamped_page_number, page_count)``."""
        size = page_size or self.config.page_size
        pages = pager.page_count(len(self.table), size)
        number = pager.clamp_page(page_number, pages)
        return pager.page(self.table, size, number), number, pages

    def toggle(self, visible_index: int, page_number: int = 1, page_size: int | None = None) -> WorkItem:
        self._ensure_idle()
        size = page_size or self.config.page_size
        index = pager.absolute_index(page_number, size, visible_index)
        self.table = selection.toggle(self.table, index)
        return self.table[index]

    def toggle_all(self) -> bool:
        """Toggle every row; return the resulting ``checked`` value."""
        self._ensure_idle()
        self.table = selection.toggle_all(self.table)
        return selection.all_checked(self.table)

    def eligible_count(self) -> int:
        return selection.eligible_count(self.table)

    async def run(self) -> BatchRunResult:
        self._ensure_idle()
        self._cancel = CancellationToken()
        try:
            result = await self._processor.run(
                self.table, on_update=self._set_table, cancel=self._cancel
            )
        finally:
            self._cancel = None
        self.table = result.table
        return result

    def cancel(self) -> bool:
        """Ask a running batch to stop after the current item; False if idle."""
        if self._cancel is None:
            return False
        self._cancel.cancel()
        return True

    def save(self) -> SaveResult:
        self._ensure_idle()
        result = self._gateway.save_checked(self.table)
        if result.outcome is Outcome.COMPLETED:
            self.table = result.table
        return result

    def export(self) -> Iterator[str]:
        return csv_codec.iter_csv(self.table, batch_size=self.config.export_batch_size)

    def clear(self) -> None:
        self._ensure_idle()
        self._ensure_listing_idle()
        self.table = WorkItemTable()
        self.url_items = []

    # -- listing URLs --------------------------------------------------------

    def import_listing_urls(self, content: str, column: int | None = None) -> int:
        self._ensure_listing_idle()
        col = self._column(column)
        items = url_forwarding.uploaded_urls(content, col)
        self.url_items = self.url_items + items
        return len(items)

    async def resolve_urls(self) -> list[ExtractedUrlItem]:
        """Resolve every uploaded listing page; the listing table is locked meanwhile."""
        self._ensure_listing_idle()
        self._resolving = True
        try:
            self.url_items = await url_forwarding.resolve_all(self.url_items, self._resolver)
        finally:
            self._resolving = False
        return self.url_items

    def forward_urls(self) -> int:
        self._ensure_idle()
        self._ensure_listing_idle()
        self.url_items, self.table, count = url_forwarding.forward(self.url_items, self.table)
        return count
