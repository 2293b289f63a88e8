"""Split editor HTML into structural content blocks.

Headings, paragraphs, list items, quotes and code blocks become one
``ContentBlock`` each, in document order. Loose inline markup between blocks
is gathered into paragraphs. Parsing is best-effort: broken markup degrades
to plain-text paragraphs instead of raising.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from journal.richtext.text import strip_html
from journal.richtext.tokenizer import Element, Node, build_tree, inner_html, text_content, to_html

logger = logging.getLogger(__name__)


class BlockType(str, Enum):
    PARAGRAPH = "Paragraph"
    HEADING1 = "Heading1"
    HEADING2 = "Heading2"
    HEADING3 = "Heading3"
    ORDERED_LIST_ITEM = "OrderedListItem"
    UNORDERED_LIST_ITEM = "UnorderedListItem"
    BLOCKQUOTE = "Blockquote"
    CODE_BLOCK = "CodeBlock"


@dataclass
class ContentBlock:
    type: BlockType
    content: str
    list_index: Optional[int] = None
    indent: int = 0


HEADING_TYPES = {
    "h1": BlockType.HEADING1,
    "h2": BlockType.HEADING2,
    "h3": BlockType.HEADING3,
    "h4": BlockType.HEADING3,
    "h5": BlockType.HEADING3,
    "h6": BlockType.HEADING3,
}
LIST_TAGS = {"ol", "ul"}
CONTAINER_TAGS = {"div", "section", "article", "main", "body", "html", "table", "tbody", "thead", "tr", "td", "th"}
SKIPPED_TAGS = {"script", "style", "head", "title", "hr"}
BLOCK_TAGS = set(HEADING_TYPES) | LIST_TAGS | CONTAINER_TAGS | {"p", "li", "blockquote", "pre"}

_INDENT_CLASS_RE = re.compile(r"^ql-indent-(\d+)$")
_FALLBACK_SPLIT_RE = re.compile(r"</p\s*>|<br\s*/?>|\n\s*\n", re.I)
_SKIPPED_CONTENT_RE = re.compile(r"<(script|style|head|title)\b[^>]*>.*?(?:</\1\s*>|\Z)", re.I | re.S)


def _has_text(nodes: List[Node]) -> bool:
    return bool(text_content(nodes).strip())


def _contains_block(element: Element) -> bool:
    for child in element.children:
        if isinstance(child, Element) and (child.tag in BLOCK_TAGS or _contains_block(child)):
            return True
    return False


def _class_indent(element: Element) -> int:
    for name in element.classes():
        match = _INDENT_CLASS_RE.match(name)
        if match:
            return int(match.group(1))
    return 0


def _quote_content(element: Element) -> str:
    # Paragraphs inside a quote are joined with line breaks.
    parts: List[str] = []
    loose: List[Node] = []
    for child in element.children:
        if isinstance(child, Element) and child.tag in {"p", "div"} | set(HEADING_TYPES):
            if _has_text(loose):
                parts.append(to_html(loose).strip())
            loose = []
            if _has_text(child.children):
                parts.append(inner_html(child).strip())
        else:
            loose.append(child)
    if _has_text(loose):
        parts.append(to_html(loose).strip())
    return "<br>".join(parts)


class _BlockCollector:
    def __init__(self) -> None:
        self.blocks: List[ContentBlock] = []
        self._run: List[Node] = []

    def flush(self) -> None:
        run, self._run = self._run, []
        if _has_text(run):
            self.blocks.append(ContentBlock(BlockType.PARAGRAPH, to_html(run).strip()))

    def _emit(self, block_type: BlockType, children: List[Node], **extra) -> None:
        if _has_text(children):
            self.blocks.append(ContentBlock(block_type, to_html(children).strip(), **extra))

    def walk(self, nodes: List[Node]) -> None:
        for node in nodes:
            if isinstance(node, str):
                self._run.append(node)
                continue
            tag = node.tag
            if tag in HEADING_TYPES:
                self.flush()
                self._emit(HEADING_TYPES[tag], node.children)
            elif tag == "p":
                self.flush()
                if _contains_block(node):
                    self.walk(node.children)
                    self.flush()
                else:
                    self._emit(BlockType.PARAGRAPH, node.children)
            elif tag == "blockquote":
                self.flush()
                content = _quote_content(node)
                if content:
                    self.blocks.append(ContentBlock(BlockType.BLOCKQUOTE, content))
            elif tag == "pre":
                self.flush()
                code = text_content(node.children).strip("\n")
                if code.strip():
                    self.blocks.append(ContentBlock(BlockType.CODE_BLOCK, code))
            elif tag in LIST_TAGS:
                self.flush()
                self._walk_list(node, indent=_class_indent(node), counters={})
            elif tag == "li":
                self.flush()
                self._walk_item(node, ordered=False, indent=_class_indent(node), counters={})
            elif tag == "br":
                self.flush()
            elif tag in SKIPPED_TAGS:
                continue
            elif tag in CONTAINER_TAGS or _contains_block(node):
                self.flush()
                self.walk(node.children)
                self.flush()
            else:
                self._run.append(node)

    def _walk_list(self, element: Element, indent: int, counters: Dict[int, int]) -> None:
        ordered = element.tag == "ol"
        loose: List[Node] = []
        for child in element.children:
            if isinstance(child, Element) and child.tag == "li":
                self._emit_loose_item(loose, ordered, indent, counters)
                loose = []
                self._walk_item(child, ordered, indent, counters)
            elif isinstance(child, Element) and child.tag in LIST_TAGS:
                self._emit_loose_item(loose, ordered, indent, counters)
                loose = []
                self._walk_list(child, indent + 1, {})
            else:
                loose.append(child)
        self._emit_loose_item(loose, ordered, indent, counters)

    def _emit_loose_item(self, nodes: List[Node], ordered: bool, indent: int, counters: Dict[int, int]) -> None:
        # Stray content directly inside a list is kept as an item of that list.
        if _has_text(nodes):
            self._walk_item(Element(tag="li", children=list(nodes)), ordered, indent, counters)

    def _walk_item(self, element: Element, ordered: bool, indent: int, counters: Dict[int, int]) -> None:
        marker = element.attrs.get("data-list", "")
        if marker == "bullet":
            ordered = False
        elif marker == "ordered":
            ordered = True
        level = indent + _class_indent(element)
        for deeper in [key for key in counters if key > level]:
            del counters[deeper]

        inline_children: List[Node] = []
        nested: List[Element] = []
        for child in element.children:
            if isinstance(child, Element) and child.tag in LIST_TAGS:
                nested.append(child)
            else:
                inline_children.append(child)

        if ordered:
            counters[level] = counters.get(level, 0) + 1
            self._emit(BlockType.ORDERED_LIST_ITEM, inline_children, list_index=counters[level], indent=level)
        else:
            self._emit(BlockType.UNORDERED_LIST_ITEM, inline_children, indent=level)

        for child in nested:
            self._walk_list(child, level + 1, {})


def _fallback_blocks(source: str) -> List[ContentBlock]:
    blocks = []
    source = _SKIPPED_CONTENT_RE.sub("", source)
    for fragment in _FALLBACK_SPLIT_RE.split(source):
        text = strip_html(fragment)
        if text:
            blocks.append(ContentBlock(BlockType.PARAGRAPH, html.escape(text, quote=False)))
    return blocks


def parse_blocks(source: str | None) -> List[ContentBlock]:
    """Parse one entry's HTML into blocks; empty input gives an empty list."""
    if not source or not source.strip():
        return []
    try:
        collector = _BlockCollector()
        collector.walk(build_tree(source).children)
        collector.flush()
        blocks = collector.blocks
    except Exception as exc:
        logger.warning("Block parsing failed, using plain-text fallback: %s", exc)
        blocks = []
    if not blocks:
        blocks = _fallback_blocks(source)
    return blocks
