from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from journal.constants import CONTENT_MAX_LENGTH, MOODS, TITLE_MAX_LENGTH


def _clean_mood(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    mood = value.strip().lower()
    if not mood:
        return None
    if mood not in MOODS:
        raise ValueError(f"Unknown mood: {value}")
    return mood


class EntryCreate(BaseModel):
    title: str = Field("", max_length=TITLE_MAX_LENGTH)
    content: str = Field("", max_length=CONTENT_MAX_LENGTH)
    primary_mood: str
    secondary_moods: List[str] = Field(default_factory=list)
    category_name: Optional[str] = None
    tag_names: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @field_validator("primary_mood")
    @classmethod
    def _primary(cls, value: str) -> str:
        mood = _clean_mood(value)
        if mood is None:
            raise ValueError("Primary mood is required")
        return mood

    @field_validator("secondary_moods")
    @classmethod
    def _secondaries(cls, value: List[str]) -> List[str]:
        moods = [mood for mood in (_clean_mood(item) for item in value) if mood]
        if len(moods) > 2:
            raise ValueError("At most two secondary moods are allowed")
        if len(set(moods)) != len(moods):
            raise ValueError("Secondary moods must be different")
        return moods

    @model_validator(mode="after")
    def _secondaries_differ_from_primary(self) -> "EntryCreate":
        if self.primary_mood in self.secondary_moods:
            raise ValueError("Secondary moods must differ from the primary mood")
        return self

    def to_payload(self) -> dict:
        payload = self.model_dump(exclude={"secondary_moods"})
        moods = self.secondary_moods + [None, None]
        payload["secondary_mood1"] = moods[0]
        payload["secondary_mood2"] = moods[1]
        return payload


class ExportSelection(BaseModel):
    entry_ids: List[int] = Field(..., min_length=1)


class DateRange(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("End date must be after start date")
        return self
