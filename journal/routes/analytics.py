from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from journal import repositories
from journal.analytics import compute_analytics, period_label
from journal.auth import require_user_id
from journal.settings import get_settings

router = APIRouter()


def resolve_period(period_days: int | None) -> int:
    if period_days is None:
        return get_settings().default_period_days
    return period_days


@router.get("/v1/analytics")
async def analytics_snapshot(
    period_days: int | None = Query(None, ge=0),
    user_id: str = Depends(require_user_id),
):
    days = resolve_period(period_days)
    entries = await repositories.list_entries(user_id)
    snapshot = compute_analytics(entries, days, tz=get_settings().tzinfo())
    return {"period_days": days, "period_label": period_label(days), "snapshot": snapshot.to_dict()}
