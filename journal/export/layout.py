"""PDF composition for journal entries and analytics reports.

Documents are drawn straight onto a reportlab canvas. Rendering runs twice:
the first pass only counts pages so the second can print "Page N of M" in
every footer.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from journal.analytics import mood_group, mood_insight
from journal.constants import MOOD_GROUP_BAR_COLORS, REPORT_TOP_N
from journal.models import format_hour
from journal.richtext.blocks import BlockType, ContentBlock, parse_blocks
from journal.richtext.inline import TextSegment, parse_inline

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
PAGE_LAYOUT = {
    "margin": 40,
    "footer_height": 20,
    "panel_padding": 15,
    "marker_width": 18,
    "indent_step": 18,
}
MARGIN = PAGE_LAYOUT["margin"]
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
TOP = PAGE_HEIGHT - MARGIN
BOTTOM = MARGIN + PAGE_LAYOUT["footer_height"]

FOOTER_TEXT = "Exported from Personal Journal"

PALETTE = {
    "text": colors.HexColor("#424242"),
    "title": colors.HexColor("#212121"),
    "subtle": colors.HexColor("#757575"),
    "muted": colors.HexColor("#9e9e9e"),
    "light": colors.HexColor("#bdbdbd"),
    "accent": colors.HexColor("#3f51b5"),
    "panel": colors.HexColor("#f5f5f5"),
    "track": colors.HexColor("#e0e0e0"),
    "quote_bg": colors.HexColor("#eef0fb"),
    "quote_bar": colors.HexColor("#7986cb"),
    "code_bg": colors.HexColor("#eceff1"),
    "code_text": colors.HexColor("#37474f"),
}

FONTS = {
    (False, False): "Helvetica",
    (True, False): "Helvetica-Bold",
    (False, True): "Helvetica-Oblique",
    (True, True): "Helvetica-BoldOblique",
}
CODE_FONT = "Courier"

BLOCK_STYLES = {
    BlockType.HEADING1: {"size": 20, "leading": 26, "bold": True, "before": 12, "after": 6},
    BlockType.HEADING2: {"size": 16, "leading": 22, "bold": True, "before": 10, "after": 4},
    BlockType.HEADING3: {"size": 13, "leading": 18, "bold": True, "before": 8, "after": 4},
    BlockType.PARAGRAPH: {"size": 12, "leading": 19, "bold": False, "before": 0, "after": 8},
    BlockType.ORDERED_LIST_ITEM: {"size": 12, "leading": 19, "bold": False, "before": 0, "after": 3},
    BlockType.UNORDERED_LIST_ITEM: {"size": 12, "leading": 19, "bold": False, "before": 0, "after": 3},
    BlockType.BLOCKQUOTE: {"size": 12, "leading": 19, "bold": False, "before": 4, "after": 10},
}
CODE_STYLE = {"size": 10, "leading": 14, "padding": 8, "before": 4, "after": 10}

_PIECE_RE = re.compile(r"\n|[^\S\n]+|\S+")


class ExportCancelled(Exception):
    """Raised between entries when the caller asked to stop."""


@dataclass
class RenderState:
    collecting: bool
    current_page: int = 0
    total_pages: int = 0


@dataclass
class Piece:
    text: str
    font: str
    size: float
    width: float
    segment: Optional[TextSegment] = None


class PageWriter:
    """Tracks the vertical cursor and starts pages with footer and header."""

    def __init__(self, pdf: canvas.Canvas, state: RenderState, footer_text: str = FOOTER_TEXT) -> None:
        self.pdf = pdf
        self.state = state
        self.footer_text = footer_text
        self.y = TOP
        self.header: Optional[Callable[["PageWriter"], None]] = None
        self._page_open = False

    def new_page(self, header: Optional[Callable[["PageWriter"], None]] = None) -> None:
        if self._page_open:
            self.pdf.showPage()
        self._page_open = True
        self.state.current_page += 1
        self.header = header
        self.y = TOP
        self._draw_footer()
        if header is not None:
            header(self)

    def ensure_space(self, height: float) -> None:
        if not self._page_open or self.y - height < BOTTOM:
            self.new_page(self.header)

    def close(self) -> None:
        if not self._page_open:
            self.new_page()
        self.pdf.showPage()
        self.pdf.save()

    def _draw_footer(self) -> None:
        if self.state.collecting:
            return
        total = self.state.total_pages or self.state.current_page
        self.pdf.setFillColor(PALETTE["muted"])
        self.pdf.setFont("Helvetica", 9)
        self.pdf.drawCentredString(
            PAGE_WIDTH / 2,
            MARGIN,
            f"{self.footer_text} | Page {self.state.current_page} of {total}",
        )


# --------------------------------------------------------------------------------------
# Rich text wrapping
# --------------------------------------------------------------------------------------

def _split_long_word(word: str, font: str, size: float, max_width: float) -> List[str]:
    chunks = []
    current = ""
    for char in word:
        if current and stringWidth(current + char, font, size) > max_width:
            chunks.append(current)
            current = char
        else:
            current += char
    if current:
        chunks.append(current)
    return chunks


def _trim_trailing_space(line: List[Piece]) -> None:
    while line and line[-1].text.isspace():
        line.pop()


def layout_segments(
    segments: List[TextSegment],
    max_width: float,
    size: float,
    *,
    bold: bool = False,
    italic: bool = False,
) -> List[List[Piece]]:
    """Greedy word wrap of styled segments into lines of pieces."""
    lines: List[List[Piece]] = [[]]
    width = 0.0
    for segment in segments:
        font = FONTS[(bold or segment.bold, italic or segment.italic)]
        for token in _PIECE_RE.findall(segment.text):
            if token == "\n":
                _trim_trailing_space(lines[-1])
                lines.append([])
                width = 0.0
                continue
            if token.isspace():
                if not lines[-1]:
                    continue
                space_width = stringWidth(" ", font, size)
                lines[-1].append(Piece(" ", font, size, space_width, segment))
                width += space_width
                continue
            token_width = stringWidth(token, font, size)
            if width + token_width > max_width and lines[-1]:
                _trim_trailing_space(lines[-1])
                lines.append([])
                width = 0.0
            if token_width > max_width:
                chunks = _split_long_word(token, font, size, max_width)
                for chunk in chunks[:-1]:
                    lines[-1].append(Piece(chunk, font, size, stringWidth(chunk, font, size), segment))
                    lines.append([])
                token = chunks[-1]
                token_width = stringWidth(token, font, size)
                width = 0.0
            lines[-1].append(Piece(token, font, size, token_width, segment))
            width += token_width
    for line in lines:
        _trim_trailing_space(line)
    while lines and not lines[-1]:
        lines.pop()
    while lines and not lines[0]:
        lines.pop(0)
    return lines


def _color(value: Optional[str], default):
    if not value:
        return default
    try:
        return colors.HexColor(value)
    except ValueError:
        return default


def draw_pieces(pdf: canvas.Canvas, pieces: List[Piece], x: float, baseline: float, default_color) -> float:
    cursor = x
    for piece in pieces:
        segment = piece.segment
        if segment is not None and segment.background_color:
            pdf.setFillColor(_color(segment.background_color, PALETTE["panel"]))
            pdf.rect(cursor, baseline - piece.size * 0.25, piece.width, piece.size * 1.15, fill=1, stroke=0)
        fill = _color(segment.color if segment else None, default_color)
        pdf.setFillColor(fill)
        pdf.setFont(piece.font, piece.size)
        pdf.drawString(cursor, baseline, piece.text)
        if segment is not None and (segment.underline or segment.strikethrough):
            pdf.setStrokeColor(fill)
            pdf.setLineWidth(0.6)
            if segment.underline:
                pdf.line(cursor, baseline - 1.5, cursor + piece.width, baseline - 1.5)
            if segment.strikethrough:
                mid = baseline + piece.size * 0.3
                pdf.line(cursor, mid, cursor + piece.width, mid)
        cursor += piece.width
    return cursor


def _baseline(top: float, leading: float, size: float) -> float:
    return top - leading / 2 - size * 0.35


# --------------------------------------------------------------------------------------
# Blocks
# --------------------------------------------------------------------------------------

def _draw_code_block(writer: PageWriter, code: str) -> None:
    size = CODE_STYLE["size"]
    leading = CODE_STYLE["leading"]
    padding = CODE_STYLE["padding"]
    char_width = stringWidth("M", CODE_FONT, size)
    max_chars = max(1, int((CONTENT_WIDTH - 2 * padding) / char_width))
    lines = []
    for raw in code.expandtabs(4).split("\n"):
        if not raw:
            lines.append("")
            continue
        lines.extend(raw[index:index + max_chars] for index in range(0, len(raw), max_chars))

    writer.y -= CODE_STYLE["before"]
    pdf = writer.pdf
    for line in lines:
        writer.ensure_space(leading)
        top = writer.y
        pdf.setFillColor(PALETTE["code_bg"])
        pdf.rect(MARGIN, top - leading, CONTENT_WIDTH, leading, fill=1, stroke=0)
        pdf.setFillColor(PALETTE["code_text"])
        pdf.setFont(CODE_FONT, size)
        pdf.drawString(MARGIN + padding, _baseline(top, leading, size), line)
        writer.y -= leading
    writer.y -= CODE_STYLE["after"]


def draw_block(writer: PageWriter, block: ContentBlock) -> None:
    if block.type == BlockType.CODE_BLOCK:
        _draw_code_block(writer, block.content)
        return

    style = BLOCK_STYLES[block.type]
    size = style["size"]
    leading = style["leading"]
    is_quote = block.type == BlockType.BLOCKQUOTE
    is_item = block.type in {BlockType.ORDERED_LIST_ITEM, BlockType.UNORDERED_LIST_ITEM}

    x = MARGIN
    width = CONTENT_WIDTH
    marker = None
    if is_item:
        indent = block.indent * PAGE_LAYOUT["indent_step"]
        marker_x = MARGIN + indent
        x = marker_x + PAGE_LAYOUT["marker_width"]
        width = CONTENT_WIDTH - indent - PAGE_LAYOUT["marker_width"]
        marker = f"{block.list_index}." if block.type == BlockType.ORDERED_LIST_ITEM else "•"
    elif is_quote:
        x = MARGIN + 14
        width = CONTENT_WIDTH - 22

    lines = layout_segments(parse_inline(block.content), width, size, bold=style["bold"], italic=is_quote)
    if not lines:
        return

    writer.y -= style["before"]
    if style["bold"]:
        # Keep a heading together with the first line that follows it.
        writer.ensure_space(leading * 2)
    pdf = writer.pdf
    for index, pieces in enumerate(lines):
        writer.ensure_space(leading)
        top = writer.y
        baseline = _baseline(top, leading, size)
        if is_quote:
            pdf.setFillColor(PALETTE["quote_bg"])
            pdf.rect(MARGIN, top - leading, CONTENT_WIDTH, leading, fill=1, stroke=0)
            pdf.setFillColor(PALETTE["quote_bar"])
            pdf.rect(MARGIN, top - leading, 3, leading, fill=1, stroke=0)
        if marker and index == 0:
            pdf.setFillColor(PALETTE["subtle"])
            pdf.setFont("Helvetica", size)
            pdf.drawString(marker_x, baseline, marker)
        color = PALETTE["title"] if style["bold"] else PALETTE["text"]
        draw_pieces(pdf, pieces, x, baseline, color)
        writer.y -= leading
    writer.y -= style["after"]


# --------------------------------------------------------------------------------------
# Entry documents
# --------------------------------------------------------------------------------------

def long_date(moment: datetime) -> str:
    return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year} at {format_hour(moment)}"


def entry_date_range(entries, tz=None) -> str:
    if not entries:
        return "No entries"
    tz = tz or timezone.utc
    first = min(entry.created_at for entry in entries).astimezone(tz)
    last = max(entry.created_at for entry in entries).astimezone(tz)
    return f"{first:%b %d, %Y} - {last:%b %d, %Y}"


def _title_case(value: str) -> str:
    return value[:1].upper() + value[1:].lower() if value else ""


def _draw_entry_header(writer: PageWriter, entry, tz) -> None:
    pdf = writer.pdf
    title = entry.title or "Untitled Entry"
    pdf.setFillColor(PALETTE["title"])
    pdf.setFont("Helvetica-Bold", 24)
    for line in simpleSplit(title, "Helvetica-Bold", 24, CONTENT_WIDTH)[:2]:
        pdf.drawString(MARGIN, writer.y - 24, line)
        writer.y -= 30
    pdf.setFillColor(PALETTE["muted"])
    pdf.setFont("Helvetica", 12)
    pdf.drawString(MARGIN, writer.y - 12, long_date(entry.local_created(tz)))
    writer.y -= 28
    pdf.setStrokeColor(PALETTE["accent"])
    pdf.setLineWidth(2)
    pdf.line(MARGIN, writer.y, PAGE_WIDTH - MARGIN, writer.y)
    writer.y -= 20


def _draw_info_box(writer: PageWriter, entry) -> None:
    padding = PAGE_LAYOUT["panel_padding"]
    column_width = (CONTENT_WIDTH - 2 * padding - padding) / 2
    moods = ", ".join(_title_case(mood) for mood in entry.all_moods)
    rows = [
        [("Mood", moods), ("Word Count", f"{entry.word_count} words")],
        [("Category", entry.category_name or "None"), ("Tags", ", ".join(entry.tag_names) or "None")],
    ]
    wrapped = [
        [(label, simpleSplit(value, "Helvetica", 12, column_width)[:3] or [""]) for label, value in row]
        for row in rows
    ]
    row_heights = [14 + 16 * max(len(lines) for _, lines in row) for row in wrapped]
    total = 2 * padding + sum(row_heights) + 10 * (len(row_heights) - 1)

    writer.ensure_space(total)
    pdf = writer.pdf
    pdf.setFillColor(PALETTE["panel"])
    pdf.rect(MARGIN, writer.y - total, CONTENT_WIDTH, total, fill=1, stroke=0)
    y = writer.y - padding
    for row, height in zip(wrapped, row_heights):
        for column, (label, lines) in enumerate(row):
            x = MARGIN + padding + column * (column_width + padding)
            pdf.setFillColor(PALETTE["muted"])
            pdf.setFont("Helvetica-Bold", 10)
            pdf.drawString(x, y - 10, label)
            pdf.setFillColor(PALETTE["text"])
            pdf.setFont("Helvetica", 12)
            for offset, line in enumerate(lines):
                pdf.drawString(x, y - 26 - offset * 16, line)
        y -= height + 10
    writer.y -= total + 15


def _draw_entry(writer: PageWriter, entry, tz) -> None:
    writer.new_page(header=lambda page: _draw_entry_header(page, entry, tz))
    _draw_info_box(writer, entry)
    writer.y -= 10
    blocks = parse_blocks(entry.content)
    if not blocks:
        writer.ensure_space(20)
        writer.pdf.setFillColor(PALETTE["muted"])
        writer.pdf.setFont("Helvetica-Oblique", 12)
        writer.pdf.drawString(MARGIN, writer.y - 12, "No content")
        writer.y -= 20
        return
    for block in blocks:
        draw_block(writer, block)


def _draw_cover(writer: PageWriter, title, subtitle, count, range_label, generated_at) -> None:
    writer.new_page()
    pdf = writer.pdf
    center = PAGE_WIDTH / 2
    y = TOP - 140
    pdf.setFillColor(PALETTE["accent"])
    pdf.setFont("Helvetica-Bold", 32)
    pdf.drawCentredString(center, y, title)
    y -= 40
    pdf.setFillColor(PALETTE["subtle"])
    pdf.setFont("Helvetica", 18)
    pdf.drawCentredString(center, y, subtitle)
    y -= 56
    pdf.setFillColor(PALETTE["muted"])
    pdf.setFont("Helvetica", 14)
    pdf.drawCentredString(center, y, f"{count} {'entry' if count == 1 else 'entries'}")
    y -= 24
    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(center, y, range_label)
    y -= 50
    pdf.setFillColor(PALETTE["light"])
    pdf.setFont("Helvetica", 10)
    pdf.drawCentredString(center, y, f"Generated: {generated_at:%B %d, %Y}")


def _render_two_pass(draw: Callable[[canvas.Canvas, RenderState], None], output, title: str) -> int:
    first = RenderState(collecting=True)
    draw(canvas.Canvas(io.BytesIO(), pagesize=A4), first)

    second = RenderState(collecting=False, total_pages=first.current_page)
    target = str(output) if isinstance(output, (str, Path)) else output
    pdf = canvas.Canvas(target, pagesize=A4)
    pdf.setTitle(title)
    pdf.setAuthor("Personal Journal")
    pdf.setCreator("Personal Journal")
    draw(pdf, second)
    logger.info("Rendered PDF '%s' with %s pages", title, second.current_page)
    return second.current_page


def render_entry_document(
    entries,
    output,
    *,
    cover: bool = False,
    title: str = "Personal Journal",
    subtitle: str = "Exported Entries",
    range_label: Optional[str] = None,
    tz=None,
    generated_at: Optional[datetime] = None,
    cancel_event=None,
) -> int:
    """Render entries (each starting on a new page) to a path or file object.

    Returns the page count. ``cancel_event`` (a ``threading.Event``) is
    checked before each entry.
    """
    entries = list(entries)
    tz = tz or timezone.utc
    generated_at = generated_at or datetime.now(tz)
    if range_label is None:
        range_label = entry_date_range(entries, tz)

    def draw(pdf: canvas.Canvas, state: RenderState) -> None:
        writer = PageWriter(pdf, state)
        if cover:
            _draw_cover(writer, title, subtitle, len(entries), range_label, generated_at)
        for entry in entries:
            if cancel_event is not None and cancel_event.is_set():
                raise ExportCancelled("Export cancelled")
            _draw_entry(writer, entry, tz)
        writer.close()

    document_title = entries[0].title if len(entries) == 1 and not cover and entries[0].title else title
    return _render_two_pass(draw, output, document_title)


# --------------------------------------------------------------------------------------
# Analytics report
# --------------------------------------------------------------------------------------

def clamp_percentage(value: float) -> float:
    return max(0.0, min(100.0, value))


def bar_width(percentage: float, full_width: float) -> float:
    return full_width * clamp_percentage(percentage) / 100


def _section_title(writer: PageWriter, text: str, body_height: float) -> None:
    writer.y -= 8
    writer.ensure_space(28 + body_height)
    writer.pdf.setFillColor(PALETTE["text"])
    writer.pdf.setFont("Helvetica-Bold", 16)
    writer.pdf.drawString(MARGIN, writer.y - 16, text)
    writer.y -= 28


def _panel(writer: PageWriter, height: float) -> float:
    writer.pdf.setFillColor(PALETTE["panel"])
    writer.pdf.rect(MARGIN, writer.y - height, CONTENT_WIDTH, height, fill=1, stroke=0)
    top = writer.y - PAGE_LAYOUT["panel_padding"]
    writer.y -= height + 12
    return top


def _draw_report_header(writer: PageWriter, period: str, generated_at: datetime) -> None:
    pdf = writer.pdf
    pdf.setFillColor(PALETTE["title"])
    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawString(MARGIN, writer.y - 24, "Journal Analytics Report")
    writer.y -= 34
    pdf.setFillColor(PALETTE["muted"])
    pdf.setFont("Helvetica", 12)
    pdf.drawString(MARGIN, writer.y - 12, f"Period: {period}")
    writer.y -= 20
    pdf.setFillColor(PALETTE["light"])
    pdf.setFont("Helvetica", 10)
    pdf.drawString(MARGIN, writer.y - 10, f"Generated: {generated_at:%B %d, %Y}")
    writer.y -= 22
    pdf.setStrokeColor(PALETTE["accent"])
    pdf.setLineWidth(2)
    pdf.line(MARGIN, writer.y, PAGE_WIDTH - MARGIN, writer.y)
    writer.y -= 20


def _draw_metric_columns(writer: PageWriter, metrics, value_size: float) -> None:
    padding = PAGE_LAYOUT["panel_padding"]
    height = 2 * padding + 14 + value_size + 6
    top = _panel(writer, height)
    column_width = (CONTENT_WIDTH - 2 * padding) / len(metrics)
    pdf = writer.pdf
    for index, (label, value) in enumerate(metrics):
        x = MARGIN + padding + index * column_width
        pdf.setFillColor(PALETTE["muted"])
        pdf.setFont("Helvetica", 10)
        pdf.drawString(x, top - 10, label)
        pdf.setFillColor(PALETTE["accent"])
        pdf.setFont("Helvetica-Bold", value_size)
        pdf.drawString(x, top - 18 - value_size, value)


def _draw_mood_distribution(writer: PageWriter, snapshot, top_n: int) -> None:
    total = sum(snapshot.mood_counts.values())
    moods = sorted(snapshot.mood_counts.items(), key=lambda item: -item[1])[:top_n]
    padding = PAGE_LAYOUT["panel_padding"]
    row_height = 22
    height = 2 * padding + row_height * len(moods)
    _section_title(writer, "Mood Distribution", height)
    top = _panel(writer, height)

    pdf = writer.pdf
    label_width = 100
    value_width = 70
    track_x = MARGIN + padding + label_width
    track_width = CONTENT_WIDTH - 2 * padding - label_width - value_width
    for index, (mood, count) in enumerate(moods):
        row_top = top - index * row_height
        percentage = clamp_percentage(count * 100 / total if total else 0)
        pdf.setFillColor(PALETTE["text"])
        pdf.setFont("Helvetica", 11)
        pdf.drawString(MARGIN + padding, row_top - 14, _title_case(mood))
        pdf.setFillColor(PALETTE["track"])
        pdf.rect(track_x, row_top - 17, track_width, 16, fill=1, stroke=0)
        fill_width = bar_width(percentage, track_width)
        if fill_width > 0:
            pdf.setFillColor(colors.HexColor(MOOD_GROUP_BAR_COLORS[mood_group(mood)]))
            pdf.rect(track_x, row_top - 17, fill_width, 16, fill=1, stroke=0)
        pdf.setFillColor(PALETTE["text"])
        pdf.setFont("Helvetica", 10)
        pdf.drawRightString(PAGE_WIDTH - MARGIN - padding, row_top - 14, f"{count} ({percentage:.0f}%)")

    lines = [
        f"Positive {snapshot.positive_mood_percentage}%  ·  "
        f"Neutral {snapshot.neutral_mood_percentage}%  ·  "
        f"Negative {snapshot.negative_mood_percentage}%"
    ]
    if snapshot.most_common_mood:
        lines.append(
            mood_insight(
                snapshot.most_common_mood,
                snapshot.mood_counts.get(snapshot.most_common_mood, 0),
                snapshot.total_entries,
            )
        )
    for line in lines:
        for wrapped in simpleSplit(line, "Helvetica-Oblique", 10, CONTENT_WIDTH):
            writer.ensure_space(14)
            pdf.setFillColor(PALETTE["subtle"])
            pdf.setFont("Helvetica-Oblique", 10)
            pdf.drawString(MARGIN, writer.y - 10, wrapped)
            writer.y -= 14


def _draw_top_tags(writer: PageWriter, snapshot, top_n: int) -> None:
    tags = snapshot.top_tags[:top_n]
    padding = PAGE_LAYOUT["panel_padding"]
    row_height = 18
    height = 2 * padding + row_height * len(tags)
    _section_title(writer, "Most Used Tags", height)
    top = _panel(writer, height)
    pdf = writer.pdf
    for index, tag in enumerate(tags):
        row_top = top - index * row_height
        pdf.setFillColor(PALETTE["text"])
        pdf.setFont("Helvetica", 11)
        name = simpleSplit(tag.tag_name or "Unknown", "Helvetica", 11, CONTENT_WIDTH - 2 * padding - 90)[:1]
        pdf.drawString(MARGIN + padding, row_top - 12, name[0] if name else "Unknown")
        pdf.setFillColor(PALETTE["muted"])
        pdf.setFont("Helvetica", 10)
        pdf.drawRightString(PAGE_WIDTH - MARGIN - padding, row_top - 12, f"{tag.usage_count} uses")


def render_analytics_report(
    snapshot,
    output,
    *,
    period_label: str,
    generated_at: Optional[datetime] = None,
    top_n: int = REPORT_TOP_N,
) -> int:
    """Render an analytics snapshot as a report; returns the page count."""
    generated_at = generated_at or datetime.now()

    def draw(pdf: canvas.Canvas, state: RenderState) -> None:
        writer = PageWriter(pdf, state)
        writer.new_page()
        _draw_report_header(writer, period_label, generated_at)

        _section_title(writer, "Overview", 70)
        _draw_metric_columns(
            writer,
            [
                ("Total Entries", str(snapshot.total_entries)),
                ("Current Streak", f"{snapshot.current_streak} days"),
                ("Longest Streak", f"{snapshot.longest_streak} days"),
                ("Avg Words/Entry", f"{snapshot.average_words_per_entry:.0f}"),
            ],
            18,
        )

        if snapshot.mood_counts:
            _draw_mood_distribution(writer, snapshot, top_n)
        if snapshot.top_tags:
            _draw_top_tags(writer, snapshot, top_n)

        _section_title(writer, "Achievements", 70)
        _draw_metric_columns(
            writer,
            [
                ("Total Words", f"{snapshot.total_words:,}"),
                ("Days Journaling", str(snapshot.days_journaling)),
                ("Unique Tags", str(snapshot.unique_tags)),
            ],
            16,
        )
        writer.close()

    return _render_two_pass(draw, output, "Journal Analytics Report")
