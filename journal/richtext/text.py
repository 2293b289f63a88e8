from __future__ import annotations

import html
import re

from journal.richtext.tokenizer import build_tree, text_content

_TAG_RE = re.compile(r"<[^>]*>")
_SPACES_RE = re.compile(r"[ \t\r\f\v]+")


def strip_html(source: str | None) -> str:
    """Remove every tag and decode entities, trimming the result."""
    if not source:
        return ""
    text = _TAG_RE.sub("", source)
    return html.unescape(text).strip()


def html_to_text(source: str | None) -> str:
    """Readable plain text: blocks and line breaks become whitespace."""
    if not source:
        return ""
    try:
        text = text_content(build_tree(source).children, block_separator="\n")
    except Exception:
        return strip_html(source)
    lines = [_SPACES_RE.sub(" ", line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


def count_words(source: str | None) -> int:
    return len(html_to_text(source).split())
