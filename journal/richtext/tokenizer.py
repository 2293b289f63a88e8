"""Minimal HTML tokenizer and tolerant tree builder for editor content.

Only the subset of HTML produced by the journal's rich-text editor matters
here, but arbitrary pasted markup must never make parsing fail. The
tokenizer splits the source into tags, comments and text; the tree builder
turns the token stream into nested ``Element`` nodes, dropping stray closing
tags and closing unclosed elements at their parent's end.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

VOID_TAGS = {"br", "hr", "img", "input", "meta", "link", "area", "base", "col", "embed", "source", "wbr"}
RAW_TEXT_TAGS = {"script", "style"}
BLOCK_LEVEL_TAGS = {
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "ol", "ul", "li", "blockquote", "pre",
    "div", "section", "article", "main", "body", "html", "table", "hr",
}

_TOKEN_RE = re.compile(
    r"<!--.*?(?:-->|\Z)"
    r"|<!\[CDATA\[.*?(?:\]\]>|\Z)"
    r"|<![^>]*>"
    r"|<(/?)([a-zA-Z][a-zA-Z0-9-]*)((?:[^>\"']|\"[^\"]*\"|'[^']*')*)>",
    re.S,
)
_ATTR_RE = re.compile(
    r"([a-zA-Z_:][-a-zA-Z0-9_:.]*)(?:\s*=\s*(\"[^\"]*\"|'[^']*'|[^\s\"'=<>`]+))?"
)

TEXT = "text"
START = "start"
END = "end"
COMMENT = "comment"


@dataclass
class Token:
    kind: str
    name: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    data: str = ""
    self_closing: bool = False


@dataclass
class Element:
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def classes(self) -> List[str]:
        return [item for item in self.attrs.get("class", "").split() if item]


Node = Union[Element, str]


def _parse_attrs(raw: str) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    for match in _ATTR_RE.finditer(raw or ""):
        name = match.group(1).lower()
        value = match.group(2)
        if value is None:
            value = ""
        elif value[:1] in {'"', "'"}:
            value = value[1:-1]
        if name not in attrs:
            attrs[name] = html.unescape(value)
    return attrs


def tokenize(source: str) -> Iterator[Token]:
    """Yield tokens for ``source``; text runs are entity-decoded."""
    if not source:
        return
    position = 0
    raw_text_tag: Optional[str] = None
    for match in _TOKEN_RE.finditer(source):
        if match.start() > position:
            chunk = source[position:match.start()]
            yield Token(TEXT, data=chunk if raw_text_tag else html.unescape(chunk))
        position = match.end()
        name = match.group(2)
        if name is None:
            yield Token(COMMENT, data=match.group(0))
            continue
        name = name.lower()
        if match.group(1):
            if raw_text_tag and name != raw_text_tag:
                yield Token(TEXT, data=match.group(0))
                continue
            raw_text_tag = None
            yield Token(END, name=name)
            continue
        if raw_text_tag:
            yield Token(TEXT, data=match.group(0))
            continue
        raw_attrs = match.group(3) or ""
        self_closing = raw_attrs.rstrip().endswith("/") or name in VOID_TAGS
        if raw_attrs.rstrip().endswith("/"):
            raw_attrs = raw_attrs.rstrip()[:-1]
        if name in RAW_TEXT_TAGS and not self_closing:
            raw_text_tag = name
        yield Token(START, name=name, attrs=_parse_attrs(raw_attrs), self_closing=self_closing)
    if position < len(source):
        chunk = source[position:]
        yield Token(TEXT, data=chunk if raw_text_tag else html.unescape(chunk))


def _close_implied(stack: List[Element], name: str) -> None:
    # A new list item closes the previous one in the same list, and a new
    # block closes an open paragraph.
    if name == "li":
        for index in range(len(stack) - 1, 0, -1):
            tag = stack[index].tag
            if tag in {"ol", "ul"}:
                return
            if tag == "li":
                del stack[index:]
                return
    elif name in BLOCK_LEVEL_TAGS and len(stack) > 1 and stack[-1].tag == "p":
        stack.pop()


def build_tree(source: str) -> Element:
    """Parse ``source`` into a root element; never raises on malformed input."""
    root = Element(tag="#root")
    stack: List[Element] = [root]
    for token in tokenize(source):
        if token.kind == TEXT:
            if token.data:
                stack[-1].children.append(token.data)
        elif token.kind == START:
            _close_implied(stack, token.name)
            element = Element(tag=token.name, attrs=token.attrs)
            stack[-1].children.append(element)
            if not token.self_closing:
                stack.append(element)
        elif token.kind == END:
            for index in range(len(stack) - 1, 0, -1):
                if stack[index].tag == token.name:
                    del stack[index:]
                    break
    return root


def to_html(nodes: Union[Node, List[Node]]) -> str:
    """Serialise nodes back to markup; text is re-escaped."""
    if isinstance(nodes, list):
        return "".join(to_html(node) for node in nodes)
    if isinstance(nodes, str):
        return html.escape(nodes, quote=False)
    attrs = "".join(f' {name}="{html.escape(value, quote=True)}"' for name, value in nodes.attrs.items())
    if nodes.tag in VOID_TAGS:
        return f"<{nodes.tag}{attrs}>"
    return f"<{nodes.tag}{attrs}>{to_html(nodes.children)}</{nodes.tag}>"


def inner_html(element: Element) -> str:
    return to_html(element.children)


def text_content(nodes: Union[Node, List[Node]], block_separator: str = "") -> str:
    """Concatenate decoded text; ``br`` becomes a newline.

    With ``block_separator`` set, block-level elements are surrounded by it so
    that words in adjacent blocks do not run together.
    """
    if isinstance(nodes, list):
        return "".join(text_content(node, block_separator) for node in nodes)
    if isinstance(nodes, str):
        return nodes
    if nodes.tag == "br":
        return "\n"
    if nodes.tag in RAW_TEXT_TAGS:
        return ""
    inner = text_content(nodes.children, block_separator)
    if block_separator and nodes.tag in BLOCK_LEVEL_TAGS:
        return f"{block_separator}{inner}{block_separator}"
    return inner
