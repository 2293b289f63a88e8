"""Shared fixtures for the journal test suite.

Fixtures included:
- Entries: make_entry, sample_entries
- Time: fixed_now
- Settings: journal_env (DATABASE_URL and export dir pointing at tmp_path)
"""

from datetime import datetime, timezone
from itertools import count

import pytest

from journal.models import JournalEntryView
from journal.settings import reset_settings

# =============================================================================
# Entries
# =============================================================================

_ids = count(1)


@pytest.fixture
def make_entry():
    """Factory building JournalEntryView objects with sensible defaults."""

    def _make(
        created_at,
        content="<p>Some words here</p>",
        title="Entry",
        primary_mood="happy",
        secondary_mood1=None,
        secondary_mood2=None,
        category_name=None,
        tag_names=None,
    ):
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return JournalEntryView(
            id=next(_ids),
            title=title,
            content=content,
            primary_mood=primary_mood,
            created_at=created_at,
            secondary_mood1=secondary_mood1,
            secondary_mood2=secondary_mood2,
            category_name=category_name,
            tag_names=list(tag_names or []),
        )

    return _make


@pytest.fixture
def fixed_now():
    """Noon UTC on 2024-01-04."""
    return datetime(2024, 1, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_entries(make_entry):
    """A small mixed set of entries around the start of January 2024."""
    return [
        make_entry(
            "2024-01-01T08:30:00",
            "<p>New year <b>plans</b> and goals</p>",
            title="Fresh start",
            primary_mood="excited",
            secondary_mood1="grateful",
            category_name="Personal",
            tag_names=["Planning", "Reflection"],
        ),
        make_entry(
            "2024-01-02T19:15:00",
            "<p>Long day at work</p><ul><li>meetings</li><li>emails</li></ul>",
            title="Work",
            primary_mood="tired",
            category_name="Work",
            tag_names=["Work"],
        ),
        make_entry(
            "2024-01-04T23:45:00",
            "<h1>Late</h1><p>Could not sleep</p>",
            title="",
            primary_mood="calm",
            tag_names=["Reflection"],
        ),
    ]


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def journal_env(tmp_path, monkeypatch):
    """Point settings at a throwaway SQLite file and export directory."""
    export_dir = tmp_path / "exports"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'journal.db'}")
    monkeypatch.setenv("JOURNAL_EXPORT_DIR", str(export_dir))
    monkeypatch.setenv("JOURNAL_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("JOURNAL_TIMEZONE", "UTC")
    monkeypatch.delenv("ALLOWED_USERS", raising=False)
    reset_settings()
    yield export_dir
    reset_settings()
