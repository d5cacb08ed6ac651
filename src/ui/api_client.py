"""HTTP client wrapper for the Event Harvest FastAPI backend."""

from __future__ import annotations

import os

import httpx
import streamlit as st

API_URL = os.getenv("API_URL", "http://localhost:8000")

# A batch run makes one extraction call per row; allow for long batches.
RUN_TIMEOUT_SECONDS = 3600.0


def check_health() -> bool:
    """Return True if the API server responds to /health."""
    try:
        r = httpx.get(f"{API_URL}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.ConnectError:
        return False


def _detail(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return str(exc.response.json().get("detail", exc))
        except ValueError:
            return str(exc)
    return str(exc)


def upload_csv(file_content: bytes, filename: str, column: int | None = None) -> dict:  # type: ignore[type-arg]
    """Upload a CSV of event URLs into the batch table."""
    data = {"column": str(column)} if column is not None else {}
    try:
        r = httpx.post(
            f"{API_URL}/api/batch/import",
            files={"file": (filename, file_content, "text/csv")},
            data=data,
            timeout=60.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Upload failed: {_detail(e)}")
        return {}


def get_page(page: int, page_size: int) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.get(
            f"{API_URL}/api/batch/items",
            params={"page": page, "page_size": page_size},
            timeout=10.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def toggle_row(visible_index: int, page: int, page_size: int) -> None:
    try:
        r = httpx.post(
            f"{API_URL}/api/batch/items/{visible_index}/toggle",
            params={"page": page, "page_size": page_size},
            timeout=10.0,
        )
        r.raise_for_status()
    except httpx.HTTPError as e:
        st.error(f"Could not update selection: {_detail(e)}")


def toggle_all() -> None:
    try:
        httpx.post(f"{API_URL}/api/batch/toggle-all", timeout=10.0).raise_for_status()
    except httpx.HTTPError as e:
        st.error(f"Could not update selection: {_detail(e)}")


def run_extraction() -> dict:  # type: ignore[type-arg]
    """Start a batch run and wait for it to finish."""
    try:
        r = httpx.post(f"{API_URL}/api/batch/run", timeout=RUN_TIMEOUT_SECONDS)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Extraction failed: {_detail(e)}")
        return {}


def save_checked() -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(f"{API_URL}/api/batch/save", timeout=120.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Failed to save events to database: {_detail(e)}")
        return {}


def export_csv() -> bytes:
    try:
        r = httpx.get(f"{API_URL}/api/batch/export", timeout=120.0)
        r.raise_for_status()
        return r.content
    except httpx.HTTPError as e:
        st.error(f"Export failed: {_detail(e)}")
        return b""


def clear_all() -> None:
    try:
        httpx.delete(f"{API_URL}/api/batch", timeout=10.0).raise_for_status()
    except httpx.HTTPError as e:
        st.error(f"Could not clear the table: {_detail(e)}")


def upload_listing_csv(file_content: bytes, filename: str) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(
            f"{API_URL}/api/batch/urls/import",
            files={"file": (filename, file_content, "text/csv")},
            timeout=60.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Upload failed: {_detail(e)}")
        return {}


def get_listing_urls() -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.get(f"{API_URL}/api/batch/urls", timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def resolve_listing_urls() -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(f"{API_URL}/api/batch/urls/resolve", timeout=RUN_TIMEOUT_SECONDS)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"URL extraction failed: {_detail(e)}")
        return {}


def forward_listing_urls() -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(f"{API_URL}/api/batch/urls/forward", timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Could not copy URLs: {_detail(e)}")
        return {}
