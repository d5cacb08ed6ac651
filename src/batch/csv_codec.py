"""CSV import of source URLs and batched CSV export of extracted events.

Import uses a naive grammar: lines are split on ``,`` with no handling of
quoted fields, so a URL cell must not contain a comma.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator
from typing import Any, TextIO

from src.batch.table import WorkItemTable
from src.extraction.models import ItemStatus, WorkItem
from src.extraction.normalize import canonical_json

EXPORT_FIELDS: tuple[str, ...] = (
    "url",
    "name",
    "description",
    "start_date",
    "end_date",
    "city",
    "state",
    "country",
    "attendee_count",
    "topics",
    "event_type",
    "attendee_title",
    "logo_url",
    "sponsorship_options",
    "agenda",
    "audience_insights",
    "sponsors",
    "hosting_company",
    "ticket_cost",
    "contact_email",
)

EXPORTED_STATUSES = (ItemStatus.DONE, ItemStatus.SENT_TO_DB)


def parse_urls(content: str, column: int | None = 1) -> list[str]:
    """Pull one URL per non-empty line out of CSV text.

    Args:
        content: Raw file content.
        column: Zero-based cell index holding the URL, or ``None`` to take
            the first non-empty cell.

    Returns:
        URLs in file order; lines without a value in the column are skipped.
    """
    urls: list[str] = []
    for line in content.splitlines():
        if not line.strip():
            continue
        cells = [cell.strip() for cell in line.split(",")]
        if column is None:
            url = next((cell for cell in cells if cell), "")
        else:
            url = cells[column] if column < len(cells) else ""
        if url:
            urls.append(url)
    return urls


def import_csv(table: WorkItemTable, content: str, column: int | None = 1) -> WorkItemTable:
    """Append fresh unchecked items for every URL; a repeated URL replaces the old row."""
    return table.merge(WorkItem(url=url) for url in parse_urls(content, column))


def cell_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return canonical_json(value)
    return str(value)


def export_row(item: WorkItem, fields: tuple[str, ...] = EXPORT_FIELDS) -> list[str]:
    data = item.record.to_dict() if item.record is not None else {}
    data["url"] = item.url
    return [cell_value(data.get(name)) for name in fields]


def iter_csv(
    table: WorkItemTable,
    fields: tuple[str, ...] = EXPORT_FIELDS,
    batch_size: int = 500,
) -> Iterator[str]:
    """Yield CSV text: the header first, then up to ``batch_size`` rows per chunk.

    Only ``done`` and ``sent_to_db`` items are exported. Cells containing a
    comma, quote, or newline are quoted with inner quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")

    def flush() -> str:
        text = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return text

    writer.writerow(fields)
    yield flush()

    pending = 0
    for item in table:
        if item.status not in EXPORTED_STATUSES:
            continue
        writer.writerow(export_row(item, fields))
        pending += 1
        if pending == batch_size:
            yield flush()
            pending = 0
    if pending:
        yield flush()


def write_csv(
    table: WorkItemTable,
    fp: TextIO,
    fields: tuple[str, ...] = EXPORT_FIELDS,
    batch_size: int = 500,
) -> int:
    """Stream the export into ``fp``; return the number of data rows written."""
    for chunk in iter_csv(table, fields, batch_size):
        fp.write(chunk)
    return sum(1 for item in table if item.status in EXPORTED_STATUSES)
