from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from journal import repositories
from journal.auth import require_user_id
from journal.constants import TIMELINE_PAGE_SIZE
from journal.schemas import EntryCreate
from journal.settings import get_settings
from journal.timeline import SORT_ORDERS, filter_entries, paginate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/entries")
async def list_entries(
    q: str = Query(""),
    start: date | None = Query(None),
    end: date | None = Query(None),
    mood: str = Query(""),
    tag: str = Query(""),
    category: str = Query(""),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    page_size: int = Query(TIMELINE_PAGE_SIZE, ge=1, le=100),
    user_id: str = Depends(require_user_id),
):
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="End date must be after start date")
    if sort not in SORT_ORDERS:
        raise HTTPException(status_code=400, detail=f"Unknown sort order: {sort}")
    tz = get_settings().tzinfo()
    entries = await repositories.list_entries(user_id)
    items = filter_entries(entries, q, start, end, mood, tag, category, sort)
    result = paginate(items, page, page_size)
    result["items"] = [entry.to_dict(tz) for entry in result["items"]]
    return result


@router.get("/v1/entries/{entry_id}")
async def get_entry(entry_id: int, user_id: str = Depends(require_user_id)):
    entry = await repositories.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry.to_dict(get_settings().tzinfo())


@router.post("/v1/entries", status_code=201)
async def create_entry(payload: EntryCreate, user_id: str = Depends(require_user_id)):
    try:
        entry = await repositories.create_entry(user_id, payload.to_payload())
    except Exception as exc:
        logger.exception("Failed to create entry: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")
    return entry.to_dict(get_settings().tzinfo())


@router.put("/v1/entries/{entry_id}")
async def update_entry(entry_id: int, payload: EntryCreate, user_id: str = Depends(require_user_id)):
    try:
        entry = await repositories.update_entry(user_id, entry_id, payload.to_payload())
    except Exception as exc:
        logger.exception("Failed to update entry %s: %s", entry_id, exc)
        raise HTTPException(status_code=500, detail="Internal error")
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry.to_dict(get_settings().tzinfo())


@router.delete("/v1/entries/{entry_id}")
async def delete_entry(entry_id: int, user_id: str = Depends(require_user_id)):
    deleted = await repositories.delete_entry(user_id, entry_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Entry not found")
    return {"ok": True}


@router.get("/v1/tags")
async def list_tags(user_id: str = Depends(require_user_id)):
    return {"items": await repositories.list_tag_names(user_id)}
