from __future__ import annotations

import os

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse

from journal import repositories
from journal.analytics import compute_analytics
from journal.auth import require_user_id
from journal.calendar_stats import date_range_bounds, month_range
from journal.export import pdf_service
from journal.routes.analytics import resolve_period
from journal.routes.calendar import month_entries
from journal.schemas import DateRange, ExportSelection
from journal.settings import get_settings

router = APIRouter()


def _pdf_response(path: str | None) -> FileResponse:
    if not path:
        raise HTTPException(status_code=500, detail="Export failed")
    return FileResponse(path, media_type="application/pdf", filename=os.path.basename(path))


@router.post("/v1/export/entries/{entry_id}")
async def export_entry(entry_id: int, user_id: str = Depends(require_user_id)):
    entry = await repositories.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    path = await run_in_threadpool(pdf_service.export_single_entry, entry, get_settings())
    return _pdf_response(path)


@router.post("/v1/export/entries")
async def export_selected(payload: ExportSelection, user_id: str = Depends(require_user_id)):
    entries = await repositories.list_entries_by_ids(user_id, payload.entry_ids)
    if not entries:
        raise HTTPException(status_code=404, detail="No matching entries")
    path = await run_in_threadpool(pdf_service.export_entries, entries, get_settings())
    return _pdf_response(path)


@router.post("/v1/export/range")
async def export_range(payload: DateRange, user_id: str = Depends(require_user_id)):
    settings = get_settings()
    lower, upper = date_range_bounds(payload.start, payload.end, settings.tzinfo())
    entries = await repositories.list_entries(user_id, lower, upper)
    if not entries:
        raise HTTPException(status_code=404, detail="No entries in range")
    path = await run_in_threadpool(
        pdf_service.export_entries_by_date_range, entries, payload.start, payload.end, settings
    )
    return _pdf_response(path)


@router.post("/v1/export/month/{year}/{month}")
async def export_month(year: int, month: int, user_id: str = Depends(require_user_id)):
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise HTTPException(status_code=400, detail="Invalid month")
    settings = get_settings()
    entries = await month_entries(user_id, year, month, settings.tzinfo())
    if not entries:
        raise HTTPException(status_code=404, detail="No entries this month")
    first, _ = month_range(year, month)
    path = await run_in_threadpool(
        pdf_service.export_entries,
        entries,
        settings,
        subtitle=f"{first:%B %Y} Entries",
    )
    return _pdf_response(path)


@router.post("/v1/export/analytics")
async def export_analytics(
    period_days: int | None = Query(None, ge=0),
    user_id: str = Depends(require_user_id),
):
    settings = get_settings()
    days = resolve_period(period_days)
    entries = await repositories.list_entries(user_id)
    snapshot = compute_analytics(entries, days, tz=settings.tzinfo())
    path = await run_in_threadpool(pdf_service.export_analytics_report, snapshot, days, settings)
    return _pdf_response(path)
