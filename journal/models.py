from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from journal.constants import DEFAULT_MOOD, PREVIEW_LENGTH
from journal.richtext.text import count_words, html_to_text


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_hour(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment.minute:02d} {'AM' if moment.hour < 12 else 'PM'}"


@dataclass
class JournalEntryView:
    id: int
    title: str
    content: str
    primary_mood: str
    created_at: datetime
    secondary_mood1: Optional[str] = None
    secondary_mood2: Optional[str] = None
    modified_at: Optional[datetime] = None
    category_name: Optional[str] = None
    tag_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.created_at = ensure_utc(self.created_at)
        if self.modified_at is not None:
            self.modified_at = ensure_utc(self.modified_at)
        self.title = self.title or ""
        self.content = self.content or ""
        self.primary_mood = self.primary_mood or DEFAULT_MOOD

    @classmethod
    def from_row(cls, row: Dict[str, Any], tag_names: Optional[List[str]] = None) -> "JournalEntryView":
        return cls(
            id=int(row["id"]),
            title=row.get("title") or "",
            content=row.get("content") or "",
            primary_mood=row.get("primary_mood") or DEFAULT_MOOD,
            secondary_mood1=row.get("secondary_mood1") or None,
            secondary_mood2=row.get("secondary_mood2") or None,
            created_at=parse_timestamp(row["created_at"]),
            modified_at=parse_timestamp(row.get("modified_at")),
            category_name=row.get("category_name") or None,
            tag_names=list(tag_names if tag_names is not None else row.get("tag_names") or []),
        )

    @property
    def word_count(self) -> int:
        return count_words(self.content)

    @property
    def plain_text(self) -> str:
        return html_to_text(self.content)

    @property
    def preview(self) -> str:
        text = " ".join(self.plain_text.split())
        return text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text

    @property
    def all_moods(self) -> List[str]:
        moods = [self.primary_mood]
        for mood in (self.secondary_mood1, self.secondary_mood2):
            if mood:
                moods.append(mood)
        return moods

    @property
    def is_modified(self) -> bool:
        return self.modified_at is not None

    def local_created(self, tz: Optional[tzinfo] = None) -> datetime:
        return self.created_at.astimezone(tz or timezone.utc)

    def formatted_date(self, tz: Optional[tzinfo] = None) -> str:
        return self.local_created(tz).strftime("%b %d, %Y")

    def formatted_time(self, tz: Optional[tzinfo] = None) -> str:
        return format_hour(self.local_created(tz))

    def to_dict(self, tz: Optional[tzinfo] = None) -> Dict[str, Any]:
        payload = asdict(self)
        payload["created_at"] = self.created_at.isoformat()
        payload["modified_at"] = self.modified_at.isoformat() if self.modified_at else None
        payload["is_modified"] = self.is_modified
        payload["word_count"] = self.word_count
        payload["preview"] = self.preview
        payload["formatted_date"] = self.formatted_date(tz)
        payload["formatted_time"] = self.formatted_time(tz)
        return payload


@dataclass
class TagUsage:
    tag_name: str
    usage_count: int


@dataclass
class AnalyticsSnapshot:
    total_entries: int = 0
    total_words: int = 0
    average_words_per_entry: float = 0.0
    entries_this_month: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    completion_rate: int = 0
    days_journaling: int = 0
    unique_tags: int = 0
    unique_categories: int = 0
    word_count_growth: int = 0
    positive_mood_percentage: int = 0
    neutral_mood_percentage: int = 0
    negative_mood_percentage: int = 0
    most_common_mood: str = ""
    most_active_time_slot: str = ""
    mood_counts: Dict[str, int] = field(default_factory=dict)
    category_counts: Dict[str, int] = field(default_factory=dict)
    weekly_frequency: Dict[str, int] = field(default_factory=dict)
    word_count_trend: Dict[str, int] = field(default_factory=dict)
    time_distribution: Dict[str, int] = field(default_factory=dict)
    top_tags: List[TagUsage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
