"""Tests for the HTTP surface, request schemas and the SQL repositories."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from journal import db, repositories
from journal.db_init import init_db, seed_prebuilt_tags
from journal.export import pdf_service
from journal.main import create_app
from journal.schemas import DateRange, EntryCreate
from journal.settings import reset_settings

HEADERS = {"X-User-Id": "Alice"}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client(journal_env, sample_entries, monkeypatch):
    """Test client with the repository layer replaced by in-memory fakes."""

    async def _list_entries(user_id, start=None, end=None):
        return list(sample_entries)

    async def _get_entry(user_id, entry_id):
        return next((entry for entry in sample_entries if entry.id == entry_id), None)

    async def _list_by_ids(user_id, entry_ids):
        return [entry for entry in sample_entries if entry.id in entry_ids]

    async def _create_entry(user_id, payload):
        return sample_entries[0]

    async def _update_entry(user_id, entry_id, payload):
        entry = next((entry for entry in sample_entries if entry.id == entry_id), None)
        if entry is None:
            return None
        return replace(
            entry,
            title=payload["title"],
            primary_mood=payload["primary_mood"],
            modified_at=datetime(2024, 1, 5, tzinfo=timezone.utc),
        )

    async def _delete_entry(user_id, entry_id):
        return entry_id == sample_entries[0].id

    monkeypatch.setattr(repositories, "list_entries", _list_entries)
    monkeypatch.setattr(repositories, "get_entry", _get_entry)
    monkeypatch.setattr(repositories, "list_entries_by_ids", _list_by_ids)
    monkeypatch.setattr(repositories, "create_entry", _create_entry)
    monkeypatch.setattr(repositories, "delete_entry", _delete_entry)
    monkeypatch.setattr(repositories, "update_entry", _update_entry)
    return TestClient(create_app(init_database=False))


# =============================================================================
# Routes
# =============================================================================


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_user_header_is_required(client):
    assert client.get("/v1/entries").status_code == 401


def test_allowed_users_are_enforced(client, monkeypatch):
    monkeypatch.setenv("ALLOWED_USERS", "bob@example.com")
    reset_settings()

    assert client.get("/v1/entries", headers=HEADERS).status_code == 403


def test_list_entries_paginates(client, sample_entries):
    response = client.get("/v1/entries", params={"page_size": 2}, headers=HEADERS)

    payload = response.json()
    assert response.status_code == 200
    assert payload["total_items"] == 3
    assert payload["total_pages"] == 2
    assert [item["id"] for item in payload["items"]] == [sample_entries[2].id, sample_entries[1].id]
    assert payload["items"][0]["formatted_date"] == "Jan 04, 2024"


def test_list_entries_rejects_unknown_sort(client):
    assert client.get("/v1/entries", params={"sort": "random"}, headers=HEADERS).status_code == 400


def test_get_missing_entry(client):
    assert client.get("/v1/entries/999999", headers=HEADERS).status_code == 404


def test_create_entry_validates_moods(client):
    bad = client.post("/v1/entries", json={"title": "x", "primary_mood": "ecstatic"}, headers=HEADERS)
    good = client.post(
        "/v1/entries",
        json={"title": "x", "content": "<p>hi</p>", "primary_mood": "Happy", "secondary_moods": ["calm"]},
        headers=HEADERS,
    )

    assert bad.status_code == 422
    assert good.status_code == 201


def test_delete_entry(client, sample_entries):
    assert client.delete(f"/v1/entries/{sample_entries[0].id}", headers=HEADERS).json() == {"ok": True}
    assert client.delete("/v1/entries/999999", headers=HEADERS).status_code == 404


def test_update_entry(client, sample_entries):
    body = {"title": "Rewritten", "content": "<p>new</p>", "primary_mood": "Calm"}
    response = client.put(f"/v1/entries/{sample_entries[1].id}", json=body, headers=HEADERS)
    missing = client.put("/v1/entries/999999", json=body, headers=HEADERS)
    invalid = client.put(
        f"/v1/entries/{sample_entries[1].id}",
        json={"title": "x", "primary_mood": "calm", "secondary_moods": ["calm"]},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Rewritten"
    assert response.json()["primary_mood"] == "calm"
    assert response.json()["is_modified"] is True
    assert missing.status_code == 404
    assert invalid.status_code == 422


def test_analytics_snapshot(client):
    response = client.get("/v1/analytics", params={"period_days": 0}, headers=HEADERS)

    payload = response.json()
    assert payload["period_label"] == "All time"
    assert payload["snapshot"]["total_entries"] == 3
    assert set(payload["snapshot"]["time_distribution"]) == {"Morning", "Afternoon", "Evening", "Night"}


def test_calendar_month(client):
    payload = client.get("/v1/calendar/2024/1", headers=HEADERS).json()

    assert payload["entries_count"] == 3
    assert sorted(payload["entries_by_date"]) == ["2024-01-01", "2024-01-02", "2024-01-04"]
    assert len(payload["days"]) == 42
    assert client.get("/v1/calendar/2024/13", headers=HEADERS).status_code == 400


def test_export_entry_returns_pdf(client, sample_entries):
    response = client.post(f"/v1/export/entries/{sample_entries[0].id}", headers=HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_export_selection_and_month(client, sample_entries):
    selected = client.post(
        "/v1/export/entries", json={"entry_ids": [sample_entries[1].id]}, headers=HEADERS
    )
    month = client.post("/v1/export/month/2024/1", headers=HEADERS)

    assert selected.status_code == 200
    assert month.status_code == 200
    assert client.post("/v1/export/entries", json={"entry_ids": []}, headers=HEADERS).status_code == 422


def test_export_range_validation(client):
    response = client.post(
        "/v1/export/range", json={"start": "2024-02-01", "end": "2024-01-01"}, headers=HEADERS
    )

    assert response.status_code == 422


def test_export_failure_maps_to_500(client, monkeypatch):
    monkeypatch.setattr(pdf_service, "export_analytics_report", lambda *args, **kwargs: None)

    response = client.post("/v1/export/analytics", headers=HEADERS)

    assert response.status_code == 500
    assert response.json() == {"detail": "Export failed"}


# =============================================================================
# Schemas
# =============================================================================


def test_entry_create_normalises_moods():
    payload = EntryCreate(primary_mood=" Happy ", secondary_moods=["Calm", "tired"]).to_payload()

    assert payload["primary_mood"] == "happy"
    assert payload["secondary_mood1"] == "calm"
    assert payload["secondary_mood2"] == "tired"


@pytest.mark.parametrize(
    "data",
    [
        {"primary_mood": ""},
        {"primary_mood": "happy", "secondary_moods": ["calm", "calm"]},
        {"primary_mood": "happy", "secondary_moods": ["calm", "sad", "tired"]},
        {"primary_mood": "happy", "secondary_moods": ["happy"]},
        {"primary_mood": "happy", "title": "t" * 201},
        {"primary_mood": "happy", "content": "c" * 10001},
    ],
)
def test_entry_create_rejects_invalid_input(data):
    with pytest.raises(ValidationError):
        EntryCreate(**data)


def test_date_range_must_be_ordered():
    with pytest.raises(ValidationError):
        DateRange(start="2024-02-01", end="2024-01-01")


# =============================================================================
# Repositories (SQLite)
# =============================================================================


def test_database_url_normalisation():
    assert db.normalize_database_url("postgres://u:p@host/db?sslmode=require") == (
        "postgresql+asyncpg://u:p@host/db?ssl=true"
    )
    assert db.normalize_database_url("sqlite+aiosqlite:///tmp/x.db") == "sqlite+aiosqlite:///tmp/x.db"


def test_repository_round_trip(journal_env):
    async def scenario():
        await db.dispose_engine()
        try:
            await init_db()
            await seed_prebuilt_tags("alice", "2024-01-01T00:00:00+00:00")
            created = await repositories.create_entry(
                "alice",
                {
                    "title": "First",
                    "content": "<p>hello there</p>",
                    "primary_mood": "happy",
                    "secondary_mood1": "calm",
                    "category_name": "Personal",
                    "tag_names": ["Work", "Side project", "Work"],
                    "created_at": datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc),
                },
            )
            other = await repositories.create_entry(
                "bob", {"title": "Other", "primary_mood": "sad", "tag_names": []}
            )
            updated = await repositories.update_entry(
                "alice",
                created.id,
                {
                    "title": "First, revised",
                    "content": "<p>hello again</p>",
                    "primary_mood": "grateful",
                    "category_name": "Work",
                    "tag_names": ["Reflection"],
                },
            )
            foreign_update = await repositories.update_entry(
                "alice", other.id, {"title": "Hijack", "primary_mood": "happy"}
            )
            by_ids = await repositories.list_entries_by_ids("alice", [created.id, other.id, 999999])
            listed = await repositories.list_entries("alice")
            ranged = await repositories.list_entries(
                "alice",
                datetime(2024, 1, 3, tzinfo=timezone.utc),
                datetime(2024, 1, 4, tzinfo=timezone.utc),
            )
            tags = await repositories.list_tag_names("alice")
            deleted = await repositories.delete_entry("alice", created.id)
            missing = await repositories.get_entry("alice", created.id)
            return created, updated, foreign_update, by_ids, listed, ranged, tags, deleted, missing
        finally:
            await db.dispose_engine()

    created, updated, foreign_update, by_ids, listed, ranged, tags, deleted, missing = asyncio.run(scenario())

    assert created.title == "First"
    assert created.category_name == "Personal"
    assert created.tag_names == ["Side project", "Work"]
    assert created.all_moods == ["happy", "calm"]
    assert created.is_modified is False
    assert created.created_at == datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)
    assert updated.title == "First, revised"
    assert updated.category_name == "Work"
    assert updated.tag_names == ["Reflection"]
    assert updated.all_moods == ["grateful"]
    assert updated.created_at == created.created_at
    assert updated.is_modified is True
    assert foreign_update is None
    assert [entry.id for entry in by_ids] == [created.id]
    assert [entry.id for entry in listed] == [created.id]
    assert ranged == []
    assert "Side project" in tags and "Reflection" in tags
    assert deleted is True
    assert missing is None
