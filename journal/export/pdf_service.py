"""Write journal PDFs to disk.

Every public function here returns the written path, or None when the export
failed or was cancelled. Errors are logged, never raised to the caller.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import date, datetime
from typing import Iterable, Optional

from journal.analytics import period_label as describe_period
from journal.calendar_stats import date_range_bounds
from journal.export.layout import ExportCancelled, render_analytics_report, render_entry_document
from journal.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def resolve_export_dir(settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    candidates = []
    if settings.export_dir:
        candidates.append(settings.export_dir)
    home = os.path.expanduser("~")
    if home and home != "~" and os.path.isdir(home):
        candidates.append(os.path.join(home, "Documents"))
    candidates.append(settings.app_data_dir())
    for candidate in candidates:
        try:
            os.makedirs(candidate, exist_ok=True)
        except OSError:
            logger.warning("Export directory %s is not usable", candidate)
            continue
        if os.access(candidate, os.W_OK):
            return candidate
    return tempfile.gettempdir()


def export_filename(prefix: str, moment: datetime) -> str:
    return f"{prefix}_{moment:%Y-%m-%d_%H%M%S}_{moment:%f}.pdf"


def _target_path(prefix: str, settings: Settings) -> str:
    moment = datetime.now(settings.tzinfo())
    return os.path.join(resolve_export_dir(settings), export_filename(prefix, moment))


def _discard(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.warning("Could not remove partial export %s", path)


def _write_entries(prefix: str, entries, settings: Optional[Settings], cancel_event=None, **options) -> Optional[str]:
    settings = settings or get_settings()
    path = _target_path(prefix, settings)
    try:
        render_entry_document(entries, path, tz=settings.tzinfo(), cancel_event=cancel_event, **options)
    except ExportCancelled:
        logger.info("Export to %s cancelled", path)
        _discard(path)
        return None
    except Exception:
        logger.exception("Failed to export entries to %s", path)
        _discard(path)
        return None
    return path


def export_single_entry(entry, settings: Optional[Settings] = None) -> Optional[str]:
    if entry is None:
        logger.warning("No entry given for export")
        return None
    return _write_entries("journal_entry", [entry], settings)


def export_entries(
    entries: Iterable,
    settings: Optional[Settings] = None,
    *,
    title: str = "Personal Journal",
    subtitle: str = "Exported Entries",
    cancel_event=None,
) -> Optional[str]:
    """Export several entries, newest first, behind a cover page."""
    items = sorted(entries or [], key=lambda entry: entry.created_at, reverse=True)
    if not items:
        logger.warning("No entries given for export")
        return None
    return _write_entries(
        "journal_entries",
        items,
        settings,
        cancel_event=cancel_event,
        cover=True,
        title=title,
        subtitle=subtitle,
    )


def export_entries_by_date_range(
    entries: Iterable,
    start: date,
    end: date,
    settings: Optional[Settings] = None,
    *,
    cancel_event=None,
) -> Optional[str]:
    settings = settings or get_settings()
    lower, upper = date_range_bounds(start, end, settings.tzinfo())
    items = sorted(
        (entry for entry in entries or [] if lower <= entry.created_at < upper),
        key=lambda entry: entry.created_at,
    )
    if not items:
        logger.warning("No entries between %s and %s", start, end)
        return None
    return _write_entries(
        f"journal_entries_{start:%Y-%m-%d}_to_{end:%Y-%m-%d}",
        items,
        settings,
        cancel_event=cancel_event,
        cover=True,
        subtitle="Exported Entries",
        range_label=f"{start:%b %d, %Y} - {end:%b %d, %Y}",
    )


def export_analytics_report(snapshot, period_days: int = 0, settings: Optional[Settings] = None) -> Optional[str]:
    settings = settings or get_settings()
    path = _target_path("journal_analytics", settings)
    try:
        render_analytics_report(
            snapshot,
            path,
            period_label=describe_period(period_days),
            generated_at=datetime.now(settings.tzinfo()),
        )
    except Exception:
        logger.exception("Failed to export analytics report to %s", path)
        _discard(path)
        return None
    return path
