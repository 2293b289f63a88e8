from __future__ import annotations

import calendar as _calendar
from datetime import date, datetime, time, timedelta, timezone

from journal.analytics import week_start
from journal.constants import DEFAULT_MOOD_COLOR, MOOD_COLORS


def mood_color(mood):
    return MOOD_COLORS.get((mood or "").lower(), DEFAULT_MOOD_COLOR)


def month_last_day(reference_date):
    days = _calendar.monthrange(reference_date.year, reference_date.month)[1]
    return reference_date.replace(day=days)


def month_range(year, month):
    first = date(year, month, 1)
    return first, month_last_day(first)


def month_grid(year, month):
    """Six full weeks of dates, starting on the Sunday on or before the 1st."""
    start = week_start(date(year, month, 1))
    return [start + timedelta(days=offset) for offset in range(42)]


def entries_by_date(entries, year, month, tz=None):
    tz = tz or timezone.utc
    by_date = {}
    for entry in sorted(entries, key=lambda item: item.created_at):
        local_day = entry.created_at.astimezone(tz).date()
        if local_day.year != year or local_day.month != month:
            continue
        by_date.setdefault(local_day, entry)
    return by_date


def month_summary(entries, year, month, *, today=None, tz=None):
    tz = tz or timezone.utc
    today = today or date.today()
    first, last = month_range(year, month)
    by_date = entries_by_date(entries, year, month, tz)

    last_relevant = today if (year, month) == (today.year, today.month) else last
    days_in_month = (last_relevant - first).days + 1
    entries_count = len(by_date)
    missed_days = max(0, days_in_month - entries_count)
    completion = int(round(entries_count / days_in_month * 100)) if days_in_month > 0 else 0

    mood_counts = {}
    for entry in by_date.values():
        mood_counts[entry.primary_mood] = mood_counts.get(entry.primary_mood, 0) + 1
    most_common = max(mood_counts, key=mood_counts.get) if mood_counts else None

    return {
        "year": year,
        "month": month,
        "month_label": first.strftime("%B %Y"),
        "entries_by_date": by_date,
        "mood_colors": {day: mood_color(entry.primary_mood) for day, entry in by_date.items()},
        "entries_count": entries_count,
        "missed_days": missed_days,
        "completion_percentage": completion,
        "most_common_mood": most_common,
    }


def date_range_bounds(start, end, tz=None):
    """UTC bounds covering local ``start`` through the end of local ``end``."""
    tz = tz or timezone.utc
    lower = datetime.combine(start, time.min, tzinfo=tz).astimezone(timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return lower, upper
