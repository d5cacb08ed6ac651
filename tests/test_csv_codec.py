"""Tests for CSV import of URLs and batched CSV export."""

from __future__ import annotations

import csv
import io

from src.batch.csv_codec import (
    EXPORT_FIELDS,
    import_csv,
    iter_csv,
    parse_urls,
    write_csv,
)
from src.batch.table import WorkItemTable
from src.extraction.models import ItemStatus, StructuredRecord, WorkItem


def done(url: str, **fields: object) -> WorkItem:
    return WorkItem(
        url=url,
        status=ItemStatus.DONE,
        result=StructuredRecord(**{"name": "DevConf", **fields}),  # type: ignore[arg-type]
    )


class TestImport:
    def test_takes_second_column_by_default(self) -> None:
        content = "DevConf,https://devconf.example\nPyCon,https://pycon.example\n"
        assert parse_urls(content) == ["https://devconf.example", "https://pycon.example"]

    def test_skips_blank_lines_and_missing_cells(self) -> None:
        content = "\nDevConf,https://devconf.example\n   \nno-url-here\n"
        assert parse_urls(content) == ["https://devconf.example"]

    def test_first_non_empty_cell(self) -> None:
        content = ",https://a.example,x\nhttps://b.example\n"
        assert parse_urls(content, column=None) == ["https://a.example", "https://b.example"]

    def test_explicit_column(self) -> None:
        assert parse_urls("https://a.example,ignored", column=0) == ["https://a.example"]

    def test_handles_crlf(self) -> None:
        assert parse_urls("a,https://a.example\r\nb,https://b.example\r\n") == [
            "https://a.example",
            "https://b.example",
        ]

    def test_import_creates_fresh_unchecked_rows(self) -> None:
        table = import_csv(WorkItemTable(), "a,https://a.example\nb,https://b.example")
        assert [i.url for i in table] == ["https://a.example", "https://b.example"]
        assert all(i.status is ItemStatus.NOT_STARTED and not i.checked for i in table)

    def test_duplicate_url_is_last_write_wins(self) -> None:
        table = WorkItemTable.of([done("https://a.example")])
        table = import_csv(table, "a,https://a.example\na,https://a.example")
        assert len(table) == 1
        assert table[0].status is ItemStatus.NOT_STARTED


class TestExport:
    def test_header_and_only_completed_rows(self) -> None:
        table = WorkItemTable.of(
            [
                done("https://a.example"),
                WorkItem(url="https://b.example"),
                WorkItem(url="https://c.example", status=ItemStatus.SENT_TO_DB,
                         result=StructuredRecord(name="Sent")),
            ]
        )
        rows = list(csv.reader(io.StringIO("".join(iter_csv(table)))))
        assert rows[0] == list(EXPORT_FIELDS)
        assert [r[0] for r in rows[1:]] == ["https://a.example", "https://c.example"]

    def test_quotes_commas_and_doubles_quotes(self) -> None:
        table = WorkItemTable.of([done("https://a.example", description='Big, "fun" event')])
        text = "".join(iter_csv(table))
        assert '"Big, ""fun"" event"' in text

    def test_structures_are_encoded(self) -> None:
        table = WorkItemTable.of(
            [done("https://a.example", topics=["ai", "ml"], agenda={"day1": "keynote"})]
        )
        rows = list(csv.reader(io.StringIO("".join(iter_csv(table)))))
        row = dict(zip(rows[0], rows[1], strict=True))
        assert row["topics"] == '["ai", "ml"]'
        assert row["agenda"] == '{"day1": "keynote"}'
        assert row["city"] == ""

    def test_batches_rows(self) -> None:
        table = WorkItemTable.of([done(f"https://e{i}.example") for i in range(5)])
        chunks = list(iter_csv(table, batch_size=2))
        assert len(chunks) == 4  # header + 2 + 2 + 1
        assert chunks[-1].count("\n") == 1

    def test_write_csv_counts_rows(self) -> None:
        table = WorkItemTable.of([done("https://a.example"), WorkItem(url="https://b.example")])
        buf = io.StringIO()
        assert write_csv(table, buf) == 1
        assert buf.getvalue().startswith("url,name,")


def test_export_then_import_preserves_urls() -> None:
    urls = [f"https://event{i}.example/path?id={i}" for i in range(7)]
    table = WorkItemTable.of([done(u) for u in urls])
    exported = "".join(iter_csv(table, batch_size=3))

    # Skip the header line, then read the URL column back in
    body = exported.split("\n", 1)[1]
    reimported = import_csv(WorkItemTable(), body, column=0)
    assert [i.url for i in reimported] == urls
