"""Tests for PDF layout and the export service."""

import base64
import io
import logging
import os
import re
import threading
import zlib
from datetime import date, datetime, timezone

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from journal.analytics import compute_analytics
from journal.export import pdf_service
from journal.export.layout import (
    ExportCancelled,
    PageWriter,
    RenderState,
    bar_width,
    entry_date_range,
    layout_segments,
    long_date,
    render_analytics_report,
    render_entry_document,
)
from journal.richtext.inline import TextSegment
from journal.settings import get_settings

# =============================================================================
# Text layout
# =============================================================================


def _line_texts(lines):
    return ["".join(piece.text for piece in line) for line in lines]


def test_layout_wraps_at_word_boundaries():
    width = stringWidth("alpha beta", "Helvetica", 12) + 1

    lines = layout_segments([TextSegment("alpha beta gamma")], width, 12)

    assert _line_texts(lines) == ["alpha beta", "gamma"]


def test_layout_keeps_styles_and_fonts():
    lines = layout_segments(
        [TextSegment("plain "), TextSegment("bold", bold=True), TextSegment(" both", bold=True, italic=True)],
        500,
        12,
    )

    assert len(lines) == 1
    words = [piece for piece in lines[0] if not piece.text.isspace()]
    assert [piece.font for piece in words] == ["Helvetica", "Helvetica-Bold", "Helvetica-BoldOblique"]


def test_layout_forced_breaks_and_long_words():
    lines = layout_segments([TextSegment("top\nbottom")], 500, 12)
    assert _line_texts(lines) == ["top", "bottom"]

    word = "x" * 200
    lines = layout_segments([TextSegment(word)], 100, 12)
    assert len(lines) > 1
    assert "".join(_line_texts(lines)) == word
    assert all(sum(piece.width for piece in line) <= 100 for line in lines)


def test_layout_block_italic_applies_to_plain_segments():
    lines = layout_segments([TextSegment("quote")], 500, 12, italic=True)

    assert lines[0][0].font == "Helvetica-Oblique"


def test_bar_width_is_clamped():
    assert bar_width(50, 200) == 100
    assert bar_width(150, 200) == 200
    assert bar_width(-10, 200) == 0


def test_date_formatting_helpers(make_entry):
    moment = datetime(2024, 1, 1, 15, 5, tzinfo=timezone.utc)
    assert long_date(moment) == "Monday, January 1, 2024 at 3:05 PM"

    entries = [make_entry("2024-03-02T10:00:00"), make_entry("2024-01-15T10:00:00")]
    assert entry_date_range(entries) == "Jan 15, 2024 - Mar 02, 2024"
    assert entry_date_range([]) == "No entries"


# =============================================================================
# Documents
# =============================================================================


def _page_text(data: bytes) -> bytes:
    """Decoded content streams of a rendered PDF, joined in file order."""
    chunks = []
    for raw in re.findall(rb"stream\r?\n(.*?)\r?\nendstream", data, re.S):
        body = raw.strip()
        if body.endswith(b"~>"):
            body = base64.a85decode(body, adobe=True)
        try:
            body = zlib.decompress(body)
        except zlib.error:
            pass
        chunks.append(body)
    return b"\n".join(chunks)


RICH_CONTENT = (
    "<h1>Heading</h1><h2>Sub</h2><h3>Small</h3>"
    "<p>Some <b>bold</b>, <i>italic</i>, <u>under</u> and <s>struck</s> "
    '<span style="color: #e53935; background-color: yellow">colour</span>.</p>'
    "<ol><li>first</li><li>second<ul><li>nested</li></ul></li></ol>"
    "<blockquote>A quoted thought</blockquote>"
    '<pre class="ql-syntax">def hello():\n    return "hi"</pre>'
)


def test_single_entry_renders_one_page(make_entry):
    output = io.BytesIO()
    entry = make_entry("2024-01-01T15:05:00", RICH_CONTENT, title="Rich", tag_names=["Work"])

    pages = render_entry_document([entry], output)

    assert pages == 1
    assert output.getvalue().startswith(b"%PDF")


def test_empty_entry_renders_placeholder(make_entry):
    output = io.BytesIO()

    pages = render_entry_document([make_entry("2024-01-01T10:00:00", "", title="")], output)

    assert pages == 1
    assert output.getvalue().startswith(b"%PDF")
    assert b"(No content)" in _page_text(output.getvalue())


def test_cover_page_and_one_page_per_entry(sample_entries):
    output = io.BytesIO()

    pages = render_entry_document(sample_entries, output, cover=True)

    assert pages == 4


def test_long_entry_flows_onto_more_pages(make_entry):
    paragraphs = "".join(f"<p>Paragraph {index} " + "words " * 80 + "</p>" for index in range(40))
    output = io.BytesIO()

    pages = render_entry_document([make_entry("2024-01-01T10:00:00", paragraphs)], output)

    assert pages > 2
    text = _page_text(output.getvalue())
    for number in range(1, pages + 1):
        assert f"Exported from Personal Journal | Page {number} of {pages}".encode() in text
    assert f"Page {pages + 1} of".encode() not in text
    assert b"No content" not in text


def test_collecting_pass_draws_no_footer():
    output = io.BytesIO()
    pdf = canvas.Canvas(output)
    state = RenderState(collecting=True)

    writer = PageWriter(pdf, state)
    writer.new_page()
    writer.new_page()
    writer.close()

    assert state.current_page == 2
    assert b"Page" not in _page_text(output.getvalue())


def test_cancellation_between_entries(sample_entries):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(ExportCancelled):
        render_entry_document(sample_entries, io.BytesIO(), cancel_event=cancel)


def test_analytics_report_renders(sample_entries, fixed_now):
    snapshot = compute_analytics(sample_entries, 0, now=fixed_now)
    output = io.BytesIO()

    pages = render_analytics_report(snapshot, output, period_label="All time", generated_at=fixed_now)

    assert pages == 1
    assert output.getvalue().startswith(b"%PDF")
    assert b"Page 1 of 1" in _page_text(output.getvalue())


def test_empty_analytics_report_renders(fixed_now):
    output = io.BytesIO()

    pages = render_analytics_report(compute_analytics([], 7, now=fixed_now), output, period_label="Last 7 days")

    assert pages == 1


# =============================================================================
# Export service
# =============================================================================


def test_resolve_export_dir_prefers_configured(journal_env):
    assert pdf_service.resolve_export_dir(get_settings()) == str(journal_env)
    assert os.path.isdir(journal_env)


def test_export_filename_format():
    name = pdf_service.export_filename("journal_entry", datetime(2024, 1, 2, 3, 4, 5, 678))

    assert name == "journal_entry_2024-01-02_030405_000678.pdf"


def test_export_single_entry_writes_file(journal_env, make_entry):
    path = pdf_service.export_single_entry(make_entry("2024-01-01T10:00:00", RICH_CONTENT))

    assert path is not None
    assert os.path.dirname(path) == str(journal_env)
    assert os.path.basename(path).startswith("journal_entry_")
    with open(path, "rb") as handle:
        assert handle.read(4) == b"%PDF"


def test_concurrent_exports_do_not_collide(journal_env, sample_entries):
    first = pdf_service.export_entries(sample_entries)
    second = pdf_service.export_entries(sample_entries)

    assert first and second
    assert first != second


def test_export_without_entries_returns_none(journal_env):
    assert pdf_service.export_entries([]) is None
    assert pdf_service.export_single_entry(None) is None


def test_export_by_date_range_filters_entries(journal_env, sample_entries):
    path = pdf_service.export_entries_by_date_range(sample_entries, date(2024, 1, 1), date(2024, 1, 2))

    assert os.path.basename(path).startswith("journal_entries_2024-01-01_to_2024-01-02_")
    assert pdf_service.export_entries_by_date_range(sample_entries, date(2023, 1, 1), date(2023, 1, 2)) is None


def test_export_failure_is_logged_and_returns_none(journal_env, sample_entries, monkeypatch, caplog):
    def _boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(pdf_service, "render_entry_document", _boom)

    with caplog.at_level(logging.ERROR, logger="journal.export.pdf_service"):
        assert pdf_service.export_entries(sample_entries) is None
    assert "Failed to export entries" in caplog.text


def test_cancelled_export_leaves_no_file(journal_env, sample_entries):
    cancel = threading.Event()
    cancel.set()

    assert pdf_service.export_entries(sample_entries, cancel_event=cancel) is None
    assert not any(name.endswith(".pdf") for name in os.listdir(journal_env))


def test_export_analytics_report(journal_env, sample_entries, fixed_now):
    snapshot = compute_analytics(sample_entries, 30, now=fixed_now)

    path = pdf_service.export_analytics_report(snapshot, 30)

    assert os.path.basename(path).startswith("journal_analytics_")
    assert os.path.getsize(path) > 0
