"""Supabase storage for extracted event records."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from src.config import settings

logger = logging.getLogger(__name__)

# Rows per upsert request
UPSERT_BATCH_SIZE = 50


class StoreError(Exception):
    """A record store rejected a write; ``payload`` is the store's error body."""

    def __init__(self, payload: dict[str, Any]) -> None:
        super().__init__(payload.get("message") or str(payload))
        self.payload = payload


class RecordStore(Protocol):
    def upsert(self, rows: list[dict[str, Any]], on_conflict: str = "url") -> int: ...


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseRecordStore:
    """Upserts rows into a Supabase table, overwriting on key conflict."""

    def __init__(self, client: Client | None = None, table: str | None = None) -> None:
        self._client = client
        self._table = table or settings.events_table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def upsert(self, rows: list[dict[str, Any]], on_conflict: str = "url") -> int:
        """Upsert ``rows`` keyed on ``on_conflict`` (batched by 50).

        Raises:
            StoreError: Carrying the PostgREST error body, or the transport
                error message when the store was unreachable.
        """
        saved = 0
        for i in range(0, len(rows), UPSERT_BATCH_SIZE):
            batch = rows[i : i + UPSERT_BATCH_SIZE]
            try:
                (
                    self.client.table(self._table)
                    .upsert(batch, on_conflict=on_conflict, ignore_duplicates=False)
                    .execute()
                )
            except APIError as exc:
                logger.error("Error saving events to %s: %s", self._table, exc.json())
                raise StoreError(exc.json()) from exc
            except httpx.HTTPError as exc:
                logger.error("Record store unreachable: %s", exc)
                raise StoreError({"message": str(exc)}) from exc
            saved += len(batch)
        return saved
