"""Tests for the entry view model, settings and logging setup."""

import logging
from datetime import datetime, timezone

from journal.logging_config import configure_logging
from journal.models import JournalEntryView, format_hour, parse_timestamp
from journal.settings import Settings, get_settings


def test_from_row_normalises_values():
    entry = JournalEntryView.from_row(
        {
            "id": "7",
            "title": None,
            "content": "<p>Hi&nbsp;there</p>",
            "primary_mood": "",
            "secondary_mood1": "",
            "created_at": "2024-01-01T10:00:00Z",
            "modified_at": None,
            "category_name": "",
        },
        ["Work"],
    )

    assert entry.id == 7
    assert entry.title == ""
    assert entry.primary_mood == "calm"
    assert entry.all_moods == ["calm"]
    assert entry.created_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert entry.category_name is None
    assert entry.tag_names == ["Work"]
    assert entry.is_modified is False


def test_naive_timestamps_are_utc():
    assert parse_timestamp("2024-01-01T10:00:00") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None


def test_preview_is_truncated(make_entry):
    entry = make_entry("2024-01-01T10:00:00", "<p>" + "abc " * 60 + "</p>")

    assert entry.preview.endswith("...")
    assert len(entry.preview) == 153


def test_to_dict_uses_local_formatting(make_entry):
    payload = make_entry("2024-01-01T00:05:00", title="Midnight").to_dict()

    assert payload["formatted_date"] == "Jan 01, 2024"
    assert payload["formatted_time"] == "12:05 AM"
    assert payload["created_at"] == "2024-01-01T00:05:00+00:00"
    assert payload["word_count"] == 3


def test_format_hour():
    assert format_hour(datetime(2024, 1, 1, 12, 0)) == "12:00 PM"
    assert format_hour(datetime(2024, 1, 1, 9, 7)) == "9:07 AM"


def test_settings_from_environment(journal_env, monkeypatch):
    monkeypatch.setenv("ALLOWED_USERS", " Alice , bob,, ")
    monkeypatch.setenv("JOURNAL_TIMEZONE", "Not/AZone")

    settings = Settings()

    assert settings.allowed_users == ["alice", "bob"]
    assert settings.tzinfo() == timezone.utc
    assert settings.default_period_days == 90
    assert get_settings() is get_settings()


def test_configure_logging_quiets_libraries():
    configure_logging("debug")

    assert logging.getLogger("reportlab").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
