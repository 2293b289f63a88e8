from __future__ import annotations

import math
from datetime import date
from typing import Iterable, List, Optional

from journal.constants import TIMELINE_PAGE_SIZE
from journal.richtext.text import strip_html

SORT_ORDERS = ("newest", "oldest", "words-desc", "words-asc")


def filter_entries(
    entries: Iterable,
    query: str = "",
    start: Optional[date] = None,
    end: Optional[date] = None,
    mood: str = "",
    tag: str = "",
    category: str = "",
    sort: str = "newest",
) -> List:
    """Search, filter and sort entries the way the timeline view does."""
    items = list(entries)

    if query and query.strip():
        needle = query.strip().lower()
        items = [
            entry for entry in items
            if needle in entry.title.lower() or needle in strip_html(entry.content).lower()
        ]
    if start:
        items = [entry for entry in items if entry.created_at.date() >= start]
    if end:
        items = [entry for entry in items if entry.created_at.date() <= end]
    if mood and mood.strip():
        wanted = mood.strip().lower()
        items = [entry for entry in items if wanted in {value.lower() for value in entry.all_moods}]
    if tag and tag.strip():
        items = [entry for entry in items if tag.strip() in entry.tag_names]
    if category and category.strip():
        items = [entry for entry in items if entry.category_name == category.strip()]

    if sort == "oldest":
        items.sort(key=lambda entry: entry.created_at)
    elif sort == "words-desc":
        items.sort(key=lambda entry: entry.word_count, reverse=True)
    elif sort == "words-asc":
        items.sort(key=lambda entry: entry.word_count)
    else:
        items.sort(key=lambda entry: entry.created_at, reverse=True)
    return items


def paginate(items: List, page: int = 1, page_size: int = TIMELINE_PAGE_SIZE) -> dict:
    page_size = max(1, page_size)
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = min(max(1, page), total_pages)
    offset = (page - 1) * page_size
    return {
        "items": items[offset:offset + page_size],
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "total_items": len(items),
    }
