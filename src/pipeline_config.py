"""Batch configuration: extraction backend enum and BatchConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.config import Settings


class ExtractionBackend(str, Enum):
    """Available extraction services for turning a URL into event fields."""

    FIRECRAWL = "firecrawl"
    CLAUDE = "claude"


@dataclass(frozen=True)
class BatchConfig:
    """Immutable knobs for one batch session.

    Defaults mirror the project's current behaviour: one extraction call in
    flight at a time, the URL in the second CSV column, 50-row pages.
    """

    extraction_backend: ExtractionBackend = ExtractionBackend.FIRECRAWL
    max_concurrency: int = 1
    extraction_timeout_seconds: float = 60.0
    csv_url_column: int | None = 1
    page_size: int = 50
    export_batch_size: int = 500

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        if self.export_batch_size < 1:
            raise ValueError("export_batch_size must be at least 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> BatchConfig:
        return cls(
            extraction_backend=ExtractionBackend(settings.extraction_backend),
            max_concurrency=settings.max_concurrency,
            extraction_timeout_seconds=settings.extraction_timeout_seconds,
            csv_url_column=settings.csv_url_column if settings.csv_url_column >= 0 else None,
            page_size=settings.page_size,
            export_batch_size=settings.export_batch_size,
        )
