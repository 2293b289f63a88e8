"""Character-level formatting for a single content block."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import List, Optional

from journal.richtext.colors import parse_color
from journal.richtext.text import strip_html
from journal.richtext.tokenizer import RAW_TEXT_TAGS, Element, Node, build_tree

logger = logging.getLogger(__name__)

BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}
UNDERLINE_TAGS = {"u", "ins"}
STRIKE_TAGS = {"s", "strike", "del"}

_CLASS_COLOR_RE = re.compile(r"^ql-(color|bg)-([a-z]+)$")


@dataclass(frozen=True)
class _Style:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    color: Optional[str] = None
    background_color: Optional[str] = None


@dataclass
class TextSegment:
    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    color: Optional[str] = None
    background_color: Optional[str] = None

    def same_format(self, other: "TextSegment") -> bool:
        return (
            self.bold == other.bold
            and self.italic == other.italic
            and self.underline == other.underline
            and self.strikethrough == other.strikethrough
            and self.color == other.color
            and self.background_color == other.background_color
        )


def _style_declarations(raw: str) -> dict:
    declarations = {}
    for item in (raw or "").split(";"):
        if ":" not in item:
            continue
        name, value = item.split(":", 1)
        declarations[name.strip().lower()] = value.strip()
    return declarations


def _apply_element(style: _Style, element: Element) -> _Style:
    tag = element.tag
    changes = {}
    if tag in BOLD_TAGS:
        changes["bold"] = True
    elif tag in ITALIC_TAGS:
        changes["italic"] = True
    elif tag in UNDERLINE_TAGS:
        changes["underline"] = True
    elif tag in STRIKE_TAGS:
        changes["strikethrough"] = True

    for name in element.classes():
        match = _CLASS_COLOR_RE.match(name)
        if not match:
            continue
        color = parse_color(match.group(2))
        if color:
            changes["color" if match.group(1) == "color" else "background_color"] = color

    declarations = _style_declarations(element.attrs.get("style", ""))
    color = parse_color(declarations.get("color"))
    if color:
        changes["color"] = color
    background = parse_color(declarations.get("background-color") or declarations.get("background"))
    if background:
        changes["background_color"] = background
    weight = declarations.get("font-weight", "")
    if weight == "bold" or weight.isdigit() and int(weight) >= 600:
        changes["bold"] = True
    if declarations.get("font-style") == "italic":
        changes["italic"] = True
    decoration = declarations.get("text-decoration", "") + " " + declarations.get("text-decoration-line", "")
    if "underline" in decoration:
        changes["underline"] = True
    if "line-through" in decoration:
        changes["strikethrough"] = True

    return replace(style, **changes) if changes else style


def _segment(text: str, style: _Style) -> TextSegment:
    return TextSegment(
        text=text,
        bold=style.bold,
        italic=style.italic,
        underline=style.underline,
        strikethrough=style.strikethrough,
        color=style.color,
        background_color=style.background_color,
    )


def _collect(nodes: List[Node], style: _Style, out: List[TextSegment]) -> None:
    for node in nodes:
        if isinstance(node, str):
            if node:
                out.append(_segment(node, style))
            continue
        if node.tag == "br":
            out.append(_segment("\n", style))
        elif node.tag in RAW_TEXT_TAGS:
            continue
        else:
            _collect(node.children, _apply_element(style, node), out)


def merge_segments(segments: List[TextSegment]) -> List[TextSegment]:
    merged: List[TextSegment] = []
    for segment in segments:
        if not segment.text:
            continue
        if merged and merged[-1].same_format(segment):
            merged[-1] = replace(merged[-1], text=merged[-1].text + segment.text)
        else:
            merged.append(segment)
    return merged


def parse_inline(source: str | None) -> List[TextSegment]:
    """Turn an inline HTML fragment into formatted text runs.

    Nested tags compose (``<b><i>x</i></b>`` is bold and italic); unknown
    tags are transparent. An unclosed tag applies to the rest of the
    fragment, so ``<b>unclosed`` yields one bold segment.
    """
    if not source:
        return []
    segments: List[TextSegment] = []
    try:
        _collect(build_tree(source).children, _Style(), segments)
    except Exception as exc:
        logger.warning("Inline parsing failed, using plain text: %s", exc)
        segments = []
    merged = merge_segments(segments)
    if not merged:
        return [TextSegment(text=strip_html(source))]
    return merged
