from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import text as sql_text, bindparam

from journal.constants import CATEGORIES_TABLE, ENTRIES_TABLE, ENTRY_TAGS_TABLE, TAGS_TABLE
from journal.db import get_sessionmaker
from journal.models import JournalEntryView, ensure_utc

logger = logging.getLogger(__name__)

ENTRY_SELECT = f"""
    SELECT e.id, e.title, e.content, e.primary_mood, e.secondary_mood1, e.secondary_mood2,
           e.created_at, e.modified_at, c.name AS category_name
    FROM {ENTRIES_TABLE} e
    LEFT JOIN {CATEGORIES_TABLE} c ON c.id = e.category_id
"""


def to_db_timestamp(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="seconds")


def _now_iso() -> str:
    return to_db_timestamp(datetime.now(timezone.utc))


async def _tag_names_by_entry(session, user_id: str, entry_ids: list[int]) -> dict[int, list[str]]:
    if not entry_ids:
        return {}
    stmt = sql_text(
        f"""
        SELECT et.entry_id, t.name
        FROM {ENTRY_TAGS_TABLE} et
        JOIN {TAGS_TABLE} t ON t.id = et.tag_id
        WHERE t.user_id = :user_id AND et.entry_id IN :entry_ids
        ORDER BY t.name
        """
    ).bindparams(bindparam("entry_ids", expanding=True))
    rows = (await session.execute(stmt, {"user_id": user_id, "entry_ids": list(entry_ids)})).mappings().all()
    names: dict[int, list[str]] = {}
    for row in rows:
        names.setdefault(int(row["entry_id"]), []).append(row["name"])
    return names


async def list_entries(user_id: str, start: datetime | None = None, end: datetime | None = None) -> list[JournalEntryView]:
    """Entries for a user, newest first. ``start`` is inclusive, ``end`` exclusive."""
    clauses = ["e.user_id = :user_id"]
    params: dict = {"user_id": user_id}
    if start is not None:
        clauses.append("e.created_at >= :start")
        params["start"] = to_db_timestamp(start)
    if end is not None:
        clauses.append("e.created_at < :end")
        params["end"] = to_db_timestamp(end)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"{ENTRY_SELECT} WHERE {' AND '.join(clauses)} ORDER BY e.created_at DESC"),
            params,
        )).mappings().all()
        tags = await _tag_names_by_entry(session, user_id, [int(row["id"]) for row in rows])
    return [JournalEntryView.from_row(dict(row), tags.get(int(row["id"]), [])) for row in rows]


async def get_entry(user_id: str, entry_id: int) -> JournalEntryView | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"{ENTRY_SELECT} WHERE e.user_id = :user_id AND e.id = :entry_id"),
            {"user_id": user_id, "entry_id": entry_id},
        )).mappings().fetchone()
        if not row:
            return None
        tags = await _tag_names_by_entry(session, user_id, [entry_id])
    return JournalEntryView.from_row(dict(row), tags.get(entry_id, []))


async def list_entries_by_ids(user_id: str, entry_ids: list[int]) -> list[JournalEntryView]:
    """Requested entries that belong to the user, newest first. Unknown ids are skipped."""
    entry_ids = list(dict.fromkeys(int(entry_id) for entry_id in entry_ids))
    if not entry_ids:
        return []
    stmt = sql_text(
        f"{ENTRY_SELECT} WHERE e.user_id = :user_id AND e.id IN :entry_ids ORDER BY e.created_at DESC"
    ).bindparams(bindparam("entry_ids", expanding=True))
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(stmt, {"user_id": user_id, "entry_ids": entry_ids})).mappings().all()
        tags = await _tag_names_by_entry(session, user_id, [int(row["id"]) for row in rows])
    return [JournalEntryView.from_row(dict(row), tags.get(int(row["id"]), [])) for row in rows]


async def _upsert_named(session, table: str, user_id: str, name: str, now_iso: str) -> int:
    await session.execute(
        sql_text(
            f"INSERT INTO {table} (user_id, name, created_at) VALUES (:user_id, :name, :created_at) "
            "ON CONFLICT(user_id, name) DO NOTHING"
        ),
        {"user_id": user_id, "name": name, "created_at": now_iso},
    )
    row = (await session.execute(
        sql_text(f"SELECT id FROM {table} WHERE user_id = :user_id AND name = :name"),
        {"user_id": user_id, "name": name},
    )).fetchone()
    return int(row[0])


async def _category_id(session, user_id: str, payload: dict, now_iso: str) -> int | None:
    category_name = (payload.get("category_name") or "").strip()
    if not category_name:
        return None
    return await _upsert_named(session, CATEGORIES_TABLE, user_id, category_name, now_iso)


async def _link_tags(session, user_id: str, entry_id: int, tag_names: list[str] | None, now_iso: str) -> None:
    for tag_name in dict.fromkeys(name.strip() for name in tag_names or [] if name.strip()):
        tag_id = await _upsert_named(session, TAGS_TABLE, user_id, tag_name, now_iso)
        await session.execute(
            sql_text(
                f"INSERT INTO {ENTRY_TAGS_TABLE} (entry_id, tag_id) VALUES (:entry_id, :tag_id) "
                "ON CONFLICT(entry_id, tag_id) DO NOTHING"
            ),
            {"entry_id": entry_id, "tag_id": tag_id},
        )


async def create_entry(user_id: str, payload: dict) -> JournalEntryView:
    now_iso = _now_iso()
    created_at = payload.get("created_at")
    created_iso = to_db_timestamp(created_at) if created_at else now_iso
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        category_id = await _category_id(session, user_id, payload, now_iso)
        row = (await session.execute(
            sql_text(
                f"""
                INSERT INTO {ENTRIES_TABLE}
                    (user_id, title, content, primary_mood, secondary_mood1, secondary_mood2,
                     category_id, created_at)
                VALUES (:user_id, :title, :content, :primary_mood, :secondary_mood1, :secondary_mood2,
                        :category_id, :created_at)
                RETURNING id
                """
            ),
            {
                "user_id": user_id,
                "title": payload.get("title") or "",
                "content": payload.get("content") or "",
                "primary_mood": payload["primary_mood"],
                "secondary_mood1": payload.get("secondary_mood1"),
                "secondary_mood2": payload.get("secondary_mood2"),
                "category_id": category_id,
                "created_at": created_iso,
            },
        )).fetchone()
        entry_id = int(row[0])
        await _link_tags(session, user_id, entry_id, payload.get("tag_names"), now_iso)
        await session.commit()
    logger.info("Created entry %s for %s", entry_id, user_id)
    entry = await get_entry(user_id, entry_id)
    return entry


async def update_entry(user_id: str, entry_id: int, payload: dict) -> JournalEntryView | None:
    """Replace an entry's text, moods, category and tags and stamp ``modified_at``.

    ``created_at`` is left untouched. Returns None when the entry does not exist.
    """
    now_iso = _now_iso()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        category_id = await _category_id(session, user_id, payload, now_iso)
        result = await session.execute(
            sql_text(
                f"""
                UPDATE {ENTRIES_TABLE}
                SET title = :title,
                    content = :content,
                    primary_mood = :primary_mood,
                    secondary_mood1 = :secondary_mood1,
                    secondary_mood2 = :secondary_mood2,
                    category_id = :category_id,
                    modified_at = :modified_at
                WHERE user_id = :user_id AND id = :entry_id
                """
            ),
            {
                "user_id": user_id,
                "entry_id": entry_id,
                "title": payload.get("title") or "",
                "content": payload.get("content") or "",
                "primary_mood": payload["primary_mood"],
                "secondary_mood1": payload.get("secondary_mood1"),
                "secondary_mood2": payload.get("secondary_mood2"),
                "category_id": category_id,
                "modified_at": now_iso,
            },
        )
        if not result.rowcount:
            await session.rollback()
            return None
        await session.execute(
            sql_text(f"DELETE FROM {ENTRY_TAGS_TABLE} WHERE entry_id = :entry_id"),
            {"entry_id": entry_id},
        )
        await _link_tags(session, user_id, entry_id, payload.get("tag_names"), now_iso)
        await session.commit()
    logger.info("Updated entry %s for %s", entry_id, user_id)
    return await get_entry(user_id, entry_id)


async def delete_entry(user_id: str, entry_id: int) -> bool:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {ENTRIES_TABLE} WHERE user_id = :user_id AND id = :entry_id"),
            {"user_id": user_id, "entry_id": entry_id},
        )
        deleted = bool(result.rowcount)
        if deleted:
            await session.execute(
                sql_text(f"DELETE FROM {ENTRY_TAGS_TABLE} WHERE entry_id = :entry_id"),
                {"entry_id": entry_id},
            )
        await session.commit()
    return deleted


async def list_tag_names(user_id: str) -> list[str]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"SELECT name FROM {TAGS_TABLE} WHERE user_id = :user_id ORDER BY name"),
            {"user_id": user_id},
        )).fetchall()
    return [row[0] for row in rows]
