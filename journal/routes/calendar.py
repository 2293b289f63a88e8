from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from journal import repositories
from journal.auth import require_user_id
from journal.calendar_stats import date_range_bounds, month_grid, month_range, month_summary
from journal.settings import get_settings

router = APIRouter()


async def month_entries(user_id: str, year: int, month: int, tz):
    first, last = month_range(year, month)
    lower, upper = date_range_bounds(first, last, tz)
    return await repositories.list_entries(user_id, lower, upper)


@router.get("/v1/calendar/{year}/{month}")
async def calendar_month(year: int, month: int, user_id: str = Depends(require_user_id)):
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise HTTPException(status_code=400, detail="Invalid month")
    tz = get_settings().tzinfo()
    entries = await month_entries(user_id, year, month, tz)
    summary = month_summary(entries, year, month, today=datetime.now(tz).date(), tz=tz)
    summary["entries_by_date"] = {
        day.isoformat(): entry.to_dict(tz) for day, entry in summary["entries_by_date"].items()
    }
    summary["mood_colors"] = {day.isoformat(): color for day, color in summary["mood_colors"].items()}
    summary["days"] = [day.isoformat() for day in month_grid(year, month)]
    return summary
