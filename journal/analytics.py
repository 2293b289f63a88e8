from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from journal.constants import (
    MOOD_GROUPS,
    NEGATIVE_MOODS,
    NEUTRAL_MOODS,
    NIGHT_SLOT,
    PERIOD_LABELS,
    POSITIVE_MOODS,
    TIME_SLOT_ORDER,
    TIME_SLOTS,
)
from journal.models import AnalyticsSnapshot, TagUsage, ensure_utc


def _local_date(entry, tz):
    return entry.created_at.astimezone(tz).date()


def period_label(period_days):
    if period_days in PERIOD_LABELS:
        return PERIOD_LABELS[period_days]
    return f"Last {period_days} days"


def week_start(day: date) -> date:
    # Weeks start on Sunday.
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_label(day: date) -> str:
    start = week_start(day)
    return f"{start:%b} {start.day}"


def time_slot(hour):
    for slot, start, end in TIME_SLOTS:
        if start <= hour < end:
            return slot
    return NIGHT_SLOT


def filter_by_period(entries, period_days, now):
    if not period_days:
        return list(entries)
    cutoff = now - timedelta(days=period_days)
    return [entry for entry in entries if entry.created_at >= cutoff]


def current_streak(entry_dates, today):
    yesterday = today - timedelta(days=1)
    if today not in entry_dates and yesterday not in entry_dates:
        return 0
    check = today if today in entry_dates else yesterday
    count = 0
    while check in entry_dates:
        count += 1
        check -= timedelta(days=1)
    return count


def longest_streak(entry_dates):
    if not entry_dates:
        return 0
    ordered = sorted(entry_dates)
    longest = 1
    run = 1
    for previous, current in zip(ordered, ordered[1:]):
        if (current - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return longest


def _percentage(count, total):
    return int(count * 100 / total) if total > 0 else 0


def _increment(counts, key):
    counts[key] = counts.get(key, 0) + 1


def _weekly_groups(entries, tz):
    groups = {}
    for entry in sorted(entries, key=lambda item: item.created_at):
        groups.setdefault(week_label(_local_date(entry, tz)), []).append(entry)
    return groups


def compute_analytics(entries, period_days=0, *, now=None, tz=None) -> AnalyticsSnapshot:
    """Aggregate one user's entries into an analytics snapshot.

    ``period_days`` of 0 means all time. Streaks always use every entry,
    everything else only the entries inside the period. Dates and hours are
    taken in ``tz`` (UTC when omitted).
    """
    tz = tz or timezone.utc
    now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
    entries = list(entries or [])
    filtered = filter_by_period(entries, period_days, now)
    today = now.astimezone(tz).date()

    snapshot = AnalyticsSnapshot()
    snapshot.time_distribution = {slot: 0 for slot in TIME_SLOT_ORDER}

    all_dates = {_local_date(entry, tz) for entry in entries}
    snapshot.current_streak = current_streak(all_dates, today)
    snapshot.longest_streak = longest_streak(all_dates)

    snapshot.total_entries = len(filtered)
    word_counts = {id(entry): entry.word_count for entry in filtered}
    snapshot.total_words = sum(word_counts[id(entry)] for entry in filtered)
    snapshot.average_words_per_entry = snapshot.total_words / len(filtered) if filtered else 0.0
    snapshot.entries_this_month = sum(
        1 for entry in filtered
        if _local_date(entry, tz).year == today.year and _local_date(entry, tz).month == today.month
    )

    if period_days:
        days_in_period = period_days
    elif entries:
        earliest = min(entry.created_at for entry in entries)
        days_in_period = (now - earliest).days + 1
    else:
        days_in_period = 1
    if days_in_period > 0:
        snapshot.completion_rate = min(int(len(filtered) * 100 / days_in_period), 100)

    snapshot.days_journaling = len({_local_date(entry, tz) for entry in filtered})

    for entry in filtered:
        for mood in entry.all_moods:
            _increment(snapshot.mood_counts, mood)
    if snapshot.mood_counts:
        snapshot.most_common_mood = max(snapshot.mood_counts, key=snapshot.mood_counts.get)

    primary = [entry.primary_mood for entry in filtered]
    snapshot.positive_mood_percentage = _percentage(sum(1 for mood in primary if mood in POSITIVE_MOODS), len(primary))
    snapshot.neutral_mood_percentage = _percentage(sum(1 for mood in primary if mood in NEUTRAL_MOODS), len(primary))
    snapshot.negative_mood_percentage = _percentage(sum(1 for mood in primary if mood in NEGATIVE_MOODS), len(primary))

    for entry in filtered:
        _increment(snapshot.category_counts, entry.category_name or "")
    snapshot.unique_categories = sum(1 for name in snapshot.category_counts if name)

    for label, group in _weekly_groups(filtered, tz).items():
        snapshot.weekly_frequency[label] = len(group)
        snapshot.word_count_trend[label] = int(sum(word_counts[id(entry)] for entry in group) / len(group))
    if len(snapshot.word_count_trend) >= 2:
        averages = list(snapshot.word_count_trend.values())
        snapshot.word_count_growth = averages[-1] - averages[0]

    tag_counts = {}
    for entry in filtered:
        for tag in entry.tag_names:
            _increment(tag_counts, tag)
    snapshot.top_tags = [
        TagUsage(tag_name=name, usage_count=count)
        for name, count in sorted(tag_counts.items(), key=lambda item: -item[1])
    ]
    snapshot.unique_tags = len(tag_counts)

    for entry in filtered:
        _increment(snapshot.time_distribution, time_slot(entry.created_at.astimezone(tz).hour))
    if filtered:
        snapshot.most_active_time_slot = max(TIME_SLOT_ORDER, key=snapshot.time_distribution.get)

    return snapshot


def mood_group(mood):
    return MOOD_GROUPS.get((mood or "").lower(), "neutral")


def mood_insight(mood, count, total):
    if not mood:
        return ""
    percentage = _percentage(count, total)
    name = mood[:1].upper() + mood[1:].lower()
    group = MOOD_GROUPS.get(mood.lower())
    if group == "positive":
        return f"{name} appears in {percentage}% of your entries. Keep up the positive energy!"
    if group == "negative":
        return f"{name} appears in {percentage}% of your entries. Consider what might help improve your mood."
    return f"{name} appears in {percentage}% of your entries."
