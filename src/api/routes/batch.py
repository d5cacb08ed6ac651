"""Batch session endpoints: import, page, select, extract, save, export."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse

from src.api.models import (
    CancelResponse,
    ForwardResponse,
    ImportResponse,
    PageResponse,
    RunResponse,
    SaveResponse,
    ToggleAllResponse,
    ToggleResponse,
    UrlItemsResponse,
    UrlItemView,
    WorkItemView,
)
from src.batch import selection
from src.batch.outcome import Outcome
from src.batch.session import BatchSession, SessionBusyError
from src.storage.record_store import StoreError

router = APIRouter(prefix="/api/batch")

# 10 MB upload limit for URL lists
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

NOTHING_TO_EXTRACT = 'Check at least one row with "not started" status to extract data.'
NOTHING_TO_SAVE = 'Check at least one row with "done" status to save it.'


def get_session(request: Request) -> BatchSession:
    return request.app.state.session  # type: ignore[no-any-return]


SessionDep = Annotated[BatchSession, Depends(get_session)]


def _busy(exc: SessionBusyError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(exc))


async def _read_csv(file: UploadFile) -> str:
    raw = await file.read()
    if len(raw) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB.",
        )
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 text") from exc


@router.post("/import", response_model=ImportResponse)
async def import_csv(
    session: SessionDep,
    file: Annotated[UploadFile, File(...)],
    column: Annotated[int | None, Form()] = None,
) -> ImportResponse:
    """Add one WorkItem per URL in the uploaded CSV (no header row assumed).

    ``column`` is the zero-based cell index holding the URL; a negative value
    takes the first non-empty cell.
    """
    content = await _read_csv(file)
    try:
        imported = session.import_csv(content, column)
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    return ImportResponse(imported=imported, total=len(session.table))


@router.get("/items", response_model=PageResponse)
async def list_items(
    session: SessionDep,
    page: Annotated[int, Query()] = 1,
    page_size: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> PageResponse:
    size = page_size or session.config.page_size
    items, number, pages = session.page(page, size)
    offset = (number - 1) * size
    return PageResponse(
        items=[WorkItemView.from_item(offset + i, item) for i, item in enumerate(items)],
        page=number,
        page_size=size,
        page_count=pages,
        total=len(session.table),
        eligible_count=session.eligible_count(),
        all_checked=selection.all_checked(session.table),
        running=session.running,
        counts=session.table.counts(),
    )


@router.post("/items/{visible_index}/toggle", response_model=ToggleResponse)
async def toggle_item(
    session: SessionDep,
    visible_index: int,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> ToggleResponse:
    size = page_size or session.config.page_size
    if not 0 <= visible_index < size:
        raise HTTPException(status_code=404, detail="Row not found")
    try:
        item = session.toggle(visible_index, page, size)
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    except IndexError as exc:
        raise HTTPException(status_code=404, detail="Row not found") from exc
    return ToggleResponse(index=(page - 1) * size + visible_index, checked=item.checked)


@router.post("/toggle-all", response_model=ToggleAllResponse)
async def toggle_all(session: SessionDep) -> ToggleAllResponse:
    try:
        checked = session.toggle_all()
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    return ToggleAllResponse(checked=checked)


@router.post("/run", response_model=RunResponse)
async def run_batch(session: SessionDep) -> RunResponse:
    """Extract every checked, not-started row, one at a time by default."""
    try:
        result = await session.run()
    except SessionBusyError as exc:
        raise _busy(exc) from exc

    if result.outcome is Outcome.NOTHING_TO_DO:
        message = NOTHING_TO_EXTRACT
    else:
        message = f"Extraction {result.outcome}: {result.done} done, {result.failed} failed."
    return RunResponse(
        outcome=result.outcome, done=result.done, failed=result.failed, message=message
    )


@router.post("/cancel", response_model=CancelResponse)
async def cancel_batch(session: SessionDep) -> CancelResponse:
    return CancelResponse(cancelled=session.cancel())


@router.post("/save", response_model=SaveResponse)
async def save_batch(session: SessionDep) -> SaveResponse:
    """Upsert checked ``done`` rows; a store failure leaves every row ``done``."""
    try:
        result = session.save()
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    except StoreError as exc:
        raise HTTPException(
            status_code=502,
            detail={"error": "Failed to save events to database.", "details": exc.payload},
        ) from exc

    if result.outcome is Outcome.NOTHING_TO_DO:
        return SaveResponse(outcome=result.outcome, message=NOTHING_TO_SAVE)
    return SaveResponse(
        outcome=result.outcome,
        saved=result.saved,
        message="Selected events saved to database successfully!",
    )


@router.get("/export")
async def export_csv(session: SessionDep) -> StreamingResponse:
    return StreamingResponse(
        session.export(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="events.csv"'},
    )


@router.delete("", status_code=204)
async def clear_batch(session: SessionDep) -> None:
    try:
        session.clear()
    except SessionBusyError as exc:
        raise _busy(exc) from exc


# --- Listing-page URLs ---


def _url_items(session: BatchSession) -> UrlItemsResponse:
    return UrlItemsResponse(items=[UrlItemView.from_item(i) for i in session.url_items])


@router.get("/urls", response_model=UrlItemsResponse)
async def list_urls(session: SessionDep) -> UrlItemsResponse:
    return _url_items(session)


@router.post("/urls/import", response_model=UrlItemsResponse)
async def import_urls(
    session: SessionDep,
    file: Annotated[UploadFile, File(...)],
    column: Annotated[int | None, Form()] = None,
) -> UrlItemsResponse:
    content = await _read_csv(file)
    try:
        session.import_listing_urls(content, column)
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    return _url_items(session)


@router.post("/urls/resolve", response_model=UrlItemsResponse)
async def resolve_urls(session: SessionDep) -> UrlItemsResponse:
    try:
        await session.resolve_urls()
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    return _url_items(session)


@router.post("/urls/forward", response_model=ForwardResponse)
async def forward_urls(session: SessionDep) -> ForwardResponse:
    try:
        forwarded = session.forward_urls()
    except SessionBusyError as exc:
        raise _busy(exc) from exc
    return ForwardResponse(forwarded=forwarded, total=len(session.table))
