"""Tests for API endpoints (no external API keys required)."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.batch.persistence import PersistenceGateway
from src.batch.processor import BatchProcessor
from src.batch.session import BatchSession
from src.extraction.normalize import ExtractionError
from src.pipeline_config import BatchConfig
from tests.fakes import FakeExtractionService, FakeRecordStore, FakeResolver

client = TestClient(app)


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def session(store: FakeRecordStore) -> Iterator[BatchSession]:
    """Swap the app's batch session for one wired to in-memory fakes."""
    original = app.state.session
    app.state.session = BatchSession(
        processor=BatchProcessor(
            FakeExtractionService({"https://bad.example": ExtractionError("page blocked")})
        ),
        gateway=PersistenceGateway(store),
        resolver=FakeResolver({"https://l.example/a-1": "https://a.example"}),
        config=BatchConfig(page_size=2),
    )
    yield app.state.session
    app.state.session = original


def upload(path: str, content: str, **data: str):  # type: ignore[no-untyped-def]
    return client.post(
        path,
        files={"file": ("events.csv", content.encode(), "text/csv")},
        data=data,
    )


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# Single-URL endpoints
# ---------------------------------------------------------------------------


class TestExtractEndpoint:
    def test_returns_normalized_event(self) -> None:
        service = MagicMock()
        service.extract = FakeExtractionService(
            {"https://a.example": {"name": "DevConf", "topics": "ai", "start_date": "2025-05-01"}}
        ).extract
        with patch("src.api.routes.extraction.get_extraction_service", return_value=service):
            response = client.post("/api/extract", json={"url": "https://a.example"})

        assert response.status_code == 200
        event = response.json()["event"]
        assert event["url"] == "https://a.example"
        assert event["topics"] == ["ai"]
        assert event["end_date"] == "2025-05-01"
        assert response.json()["raw_text"] == "# https://a.example"

    def test_extraction_failure_is_502(self) -> None:
        service = MagicMock()
        service.extract = FakeExtractionService(
            {"https://a.example": ExtractionError("Firecrawl API error: 500")}
        ).extract
        with patch("src.api.routes.extraction.get_extraction_service", return_value=service):
            response = client.post("/api/extract", json={"url": "https://a.example"})
        assert response.status_code == 502
        assert "Firecrawl API error" in response.json()["detail"]

    def test_empty_url_is_400(self) -> None:
        assert client.post("/api/extract", json={"url": ""}).status_code == 400

    def test_missing_body_is_422(self) -> None:
        assert client.post("/api/extract", json={}).status_code == 422

    def test_extract_url(self) -> None:
        with patch("src.api.routes.extraction.HttpUrlResolver") as resolver_cls:
            resolver_cls.return_value.resolve = FakeResolver(
                {"https://l.example/a-1": "https://a.example"}
            ).resolve
            ok = client.post("/api/extract-url", json={"url": "https://l.example/a-1"})
            bad = client.post("/api/extract-url", json={"url": "https://l.example/zzz"})
        assert ok.json() == {"extracted_url": "https://a.example"}
        assert bad.status_code == 502


class TestSaveEventsEndpoint:
    def test_saves_and_dedupes(self, store: FakeRecordStore) -> None:
        events = [
            {"url": "https://a.example", "name": "First"},
            {"url": "https://a.example", "name": "Second", "event_markdown": "# md"},
        ]
        with patch("src.api.routes.events.SupabaseRecordStore", return_value=store):
            response = client.post("/api/events/save", json={"events": events})

        assert response.status_code == 200
        assert response.json()["saved"] == 1
        rows, on_conflict = store.calls[0]
        assert on_conflict == "url"
        assert rows[0]["name"] == "Second"
        assert rows[0]["event_markdown"] == "# md"

    def test_empty_list_is_400(self) -> None:
        response = client.post("/api/events/save", json={"events": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid events data"

    def test_missing_url_is_400(self) -> None:
        response = client.post("/api/events/save", json={"events": [{"name": "DevConf"}]})
        assert response.status_code == 400

    def test_store_error_details_surface(self) -> None:
        failing = FakeRecordStore(error={"message": "permission denied", "code": "42501"})
        with patch("src.api.routes.events.SupabaseRecordStore", return_value=failing):
            response = client.post(
                "/api/events/save",
                json={"events": [{"url": "https://a.example", "name": "DevConf"}]},
            )
        assert response.status_code == 502
        assert response.json()["detail"]["details"]["code"] == "42501"


# ---------------------------------------------------------------------------
# Batch session endpoints
# ---------------------------------------------------------------------------


class TestBatchEndpoints:
    def test_import_and_page(self, session: BatchSession) -> None:
        response = upload("/api/batch/import", "a,https://a.example\nb,https://b.example\nc,https://c.example")
        assert response.json() == {"imported": 3, "total": 3}

        page = client.get("/api/batch/items", params={"page": 2}).json()
        assert page["page_count"] == 2
        assert [i["url"] for i in page["items"]] == ["https://c.example"]
        assert page["items"][0]["index"] == 2
        assert page["counts"]["not_started"] == 3

    def test_import_with_column(self, session: BatchSession) -> None:
        upload("/api/batch/import", "https://a.example,x", column="0")
        assert session.table[0].url == "https://a.example"

    def test_toggle_uses_page_offset(self, session: BatchSession) -> None:
        upload("/api/batch/import", "a,https://a.example\nb,https://b.example\nc,https://c.example")
        response = client.post("/api/batch/items/0/toggle", params={"page": 2})
        assert response.json() == {"index": 2, "checked": True}
        assert session.table[2].checked
        assert client.get("/api/batch/items").json()["eligible_count"] == 1

    def test_toggle_missing_row_is_404(self, session: BatchSession) -> None:
        upload("/api/batch/import", "a,https://a.example")
        assert client.post("/api/batch/items/1/toggle").status_code == 404

    def test_run_without_selection(self, session: BatchSession) -> None:
        upload("/api/batch/import", "a,https://a.example")
        body = client.post("/api/batch/run").json()
        assert body["outcome"] == "nothing_to_do"
        assert "not started" in body["message"]

    def test_run_save_export(self, session: BatchSession, store: FakeRecordStore) -> None:
        upload("/api/batch/import", "a,https://a.example\nb,https://bad.example")
        assert client.post("/api/batch/toggle-all").json() == {"checked": True}

        run = client.post("/api/batch/run").json()
        assert (run["outcome"], run["done"], run["failed"]) == ("completed", 1, 1)
        items = client.get("/api/batch/items").json()["items"]
        assert [i["status"] for i in items] == ["done", "failed"]
        assert items[1]["error"] == "page blocked"

        save = client.post("/api/batch/save").json()
        assert save["saved"] == 1
        assert session.table[0].status == "sent_to_db"
        assert [r["url"] for r in store.calls[0][0]] == ["https://a.example"]

        export = client.get("/api/batch/export")
        assert export.headers["content-type"].startswith("text/csv")
        lines = export.text.splitlines()
        assert lines[0].startswith("url,name,description")
        assert len(lines) == 2

    def test_save_nothing_to_do(self, session: BatchSession, store: FakeRecordStore) -> None:
        body = client.post("/api/batch/save").json()
        assert body["outcome"] == "nothing_to_do"
        assert store.calls == []

    def test_save_failure_is_502(self, session: BatchSession, store: FakeRecordStore) -> None:
        upload("/api/batch/import", "a,https://a.example")
        client.post("/api/batch/toggle-all")
        client.post("/api/batch/run")
        store.error = {"message": "duplicate key", "code": "23505"}

        response = client.post("/api/batch/save")
        assert response.status_code == 502
        assert response.json()["detail"]["details"]["code"] == "23505"
        assert session.table[0].status == "done"

    def test_busy_session_is_409(self, session: BatchSession) -> None:
        session._cancel = MagicMock()  # simulate a run in progress
        assert client.post("/api/batch/toggle-all").status_code == 409
        assert upload("/api/batch/import", "a,https://a.example").status_code == 409
        assert client.post("/api/batch/cancel").json() == {"cancelled": True}

    def test_cancel_when_idle(self, session: BatchSession) -> None:
        assert client.post("/api/batch/cancel").json() == {"cancelled": False}

    def test_clear(self, session: BatchSession) -> None:
        upload("/api/batch/import", "a,https://a.example")
        assert client.delete("/api/batch").status_code == 204
        assert client.get("/api/batch/items").json()["total"] == 0

    def test_non_utf8_upload_is_400(self, session: BatchSession) -> None:
        response = client.post(
            "/api/batch/import",
            files={"file": ("events.csv", b"\xff\xfe\x00bad", "text/csv")},
        )
        assert response.status_code == 400


class TestListingUrlEndpoints:
    def test_import_resolve_forward(self, session: BatchSession) -> None:
        imported = upload("/api/batch/urls/import", "x,https://l.example/a-1\ny,https://l.example/b")
        assert [i["status"] for i in imported.json()["items"]] == ["uploaded", "uploaded"]

        resolved = client.post("/api/batch/urls/resolve").json()["items"]
        assert resolved[0]["derived_url"] == "https://a.example"
        assert resolved[1]["status"] == "failed"

        forwarded = client.post("/api/batch/urls/forward").json()
        assert forwarded == {"forwarded": 1, "total": 1}
        assert client.get("/api/batch/urls").json()["items"][0]["status"] == "forwarded"

    def test_listing_endpoints_busy_while_resolving(self, session: BatchSession) -> None:
        session._resolving = True  # simulate a resolve in progress
        assert upload("/api/batch/urls/import", "x,https://l.example/a-1").status_code == 409
        assert client.post("/api/batch/urls/resolve").status_code == 409
        assert client.post("/api/batch/urls/forward").status_code == 409
        assert client.delete("/api/batch").status_code == 409
        assert client.get("/api/batch/urls").json() == {"items": []}
