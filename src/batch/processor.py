"""Batch processor: drive checked, not-started items through an extraction service.

Eligible rows are drained from a queue in table order. With the default
concurrency of 1 there is never more than one extraction call in flight;
a small worker pool can be configured instead. Every transition is
published as a fresh table snapshot the moment it happens.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from src.batch.outcome import Outcome
from src.batch.selection import is_extractable
from src.batch.table import WorkItemTable, mark_done, mark_failed, mark_in_progress
from src.extraction.models import StructuredRecord, WorkItem
from src.extraction.normalize import ExtractionError, normalize_fields
from src.extraction.service import ExtractionService

logger = logging.getLogger(__name__)

OnUpdate = Callable[[WorkItemTable], None]


class CancellationToken:
    """Cooperative stop signal, checked between items."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class BatchRunResult:
    table: WorkItemTable
    outcome: Outcome
    done: int = 0
    failed: int = 0


class BatchProcessor:
    """Runs extraction over the eligible subset of a WorkItemTable."""

    def __init__(
        self,
        service: ExtractionService,
        max_concurrency: int = 1,
        timeout: float = 60.0,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._service = service
        self._max_concurrency = max_concurrency
        self._timeout = timeout

    async def run(
        self,
        table: WorkItemTable,
        *,
        on_update: OnUpdate | None = None,
        cancel: CancellationToken | None = None,
    ) -> BatchRunResult:
        """Process every checked ``not_started`` item.

        Returns a result with outcome ``NOTHING_TO_DO`` and the table untouched
        when no item is eligible. Items that were still queued when ``cancel``
        fired stay ``not_started``.
        """
        queue: deque[int] = deque(i for i, item in enumerate(table) if is_extractable(item))
        if not queue:
            return BatchRunResult(table=table, outcome=Outcome.NOTHING_TO_DO)

        logger.info("Starting extraction of %d items", len(queue))
        current = table
        done = 0
        failed = 0

        def publish(index: int, item: WorkItem) -> None:
            nonlocal current
            current = current.with_item(index, item)
            if on_update is not None:
                on_update(current)

        async def worker() -> None:
            nonlocal done, failed
            while queue:
                if cancel is not None and cancel.cancelled:
                    return
                index = queue.popleft()
                url = current[index].url
                publish(index, mark_in_progress(current[index]))

                try:
                    record, raw_text = await self._extract(url)
                except ExtractionError as exc:
                    failed += 1
                    publish(index, mark_failed(current[index], str(exc)))
                else:
                    done += 1
                    publish(index, mark_done(current[index], record, raw_text))

        workers = min(self._max_concurrency, len(queue))
        await asyncio.gather(*(worker() for _ in range(workers)))

        outcome = Outcome.CANCELLED if queue else Outcome.COMPLETED
        logger.info(
            "Extraction %s: %d done, %d failed, %d left not started",
            outcome,
            done,
            failed,
            len(queue),
        )
        return BatchRunResult(table=current, outcome=outcome, done=done, failed=failed)

    async def _extract(self, url: str) -> tuple[StructuredRecord, str]:
        """Extract and normalize ``url``.

        Raises:
            ExtractionError: For any failure, including a timeout or an
                unexpected exception from the service.
        """
        logger.info("Extracting data for URL: %s", url)
        try:
            result = await asyncio.wait_for(self._service.extract(url), self._timeout)
            return normalize_fields(result.fields), result.raw_text
        except TimeoutError as exc:
            logger.warning("Extraction timed out for %s", url)
            raise ExtractionError(f"Extraction timed out after {self._timeout:g} seconds") from exc
        except ExtractionError as exc:
            logger.warning("Error extracting data for %s: %s", url, exc)
            raise
        except Exception as exc:
            logger.exception("Unexpected error extracting data for %s", url)
            raise ExtractionError(f"Unexpected error: {exc}") from exc
