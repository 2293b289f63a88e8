from __future__ import annotations

import logging

from sqlalchemy import text as sql_text

from journal.constants import (
    CATEGORIES_TABLE,
    ENTRIES_TABLE,
    ENTRY_TAGS_TABLE,
    PREBUILT_TAGS,
    TAGS_TABLE,
)
from journal.db import get_engine, get_sessionmaker

logger = logging.getLogger(__name__)


def _id_column(dialect_name: str) -> str:
    if dialect_name == "sqlite":
        return "INTEGER PRIMARY KEY AUTOINCREMENT"
    return "BIGSERIAL PRIMARY KEY"


async def init_db():
    engine = get_engine()
    id_column = _id_column(engine.dialect.name)
    async with engine.begin() as conn:
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {CATEGORIES_TABLE} (
                    id {id_column},
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    color TEXT,
                    created_at TEXT NOT NULL,
                    UNIQUE (user_id, name)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {TAGS_TABLE} (
                    id {id_column},
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    is_prebuilt INTEGER DEFAULT 0,
                    created_at TEXT NOT NULL,
                    UNIQUE (user_id, name)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {ENTRIES_TABLE} (
                    id {id_column},
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL DEFAULT '',
                    content TEXT NOT NULL DEFAULT '',
                    primary_mood TEXT NOT NULL,
                    secondary_mood1 TEXT,
                    secondary_mood2 TEXT,
                    category_id INTEGER,
                    created_at TEXT NOT NULL,
                    modified_at TEXT
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {ENTRY_TAGS_TABLE} (
                    entry_id INTEGER NOT NULL,
                    tag_id INTEGER NOT NULL,
                    PRIMARY KEY (entry_id, tag_id)
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"CREATE INDEX IF NOT EXISTS idx_{ENTRIES_TABLE}_user_created "
                f"ON {ENTRIES_TABLE} (user_id, created_at)"
            )
        )
    logger.info("Database schema ready (%s)", engine.dialect.name)


async def seed_prebuilt_tags(user_id: str, created_at: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        for name in PREBUILT_TAGS:
            await session.execute(
                sql_text(
                    f"INSERT INTO {TAGS_TABLE} (user_id, name, is_prebuilt, created_at) "
                    "VALUES (:user_id, :name, 1, :created_at) "
                    "ON CONFLICT(user_id, name) DO NOTHING"
                ),
                {"user_id": user_id, "name": name, "created_at": created_at},
            )
        await session.commit()
