from __future__ import annotations

import re

NAMED_COLORS = {
    "red": "#ff0000",
    "blue": "#0000ff",
    "green": "#008000",
    "yellow": "#ffff00",
    "orange": "#ffa500",
    "purple": "#800080",
    "pink": "#ffc0cb",
    "black": "#000000",
    "white": "#ffffff",
    "gray": "#808080",
    "grey": "#808080",
}

_HEX_RE = re.compile(r"^#([0-9a-f]{6}|[0-9a-f]{3})$")
_RGB_RE = re.compile(r"^rgba?\((.*)\)$")


def _channel(raw: str) -> int:
    raw = raw.strip()
    if raw.endswith("%"):
        value = float(raw[:-1]) * 255 / 100
    else:
        value = float(raw)
    return max(0, min(255, int(round(value))))


def parse_color(value: str | None) -> str | None:
    """Normalise a CSS colour to ``#rrggbb``; unsupported forms return None."""
    if not value:
        return None
    text = value.replace("!important", "").strip().rstrip(";").strip().lower()
    if not text:
        return None

    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return f"#{digits}"

    match = _RGB_RE.match(text)
    if match:
        parts = [part for part in re.split(r"[,\s/]+", match.group(1).strip()) if part]
        if len(parts) < 3:
            return None
        try:
            red, green, blue = (_channel(part) for part in parts[:3])
        except ValueError:
            return None
        return f"#{red:02x}{green:02x}{blue:02x}"

    return NAMED_COLORS.get(text)
