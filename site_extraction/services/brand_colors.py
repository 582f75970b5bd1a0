"""Weighted brand color detection from inline styles, stylesheets and meta tags."""

import colorsys
import re
from collections import Counter

from bs4 import BeautifulSoup

MAX_COLORS = 5

# Scan limits for very large pages
_MAX_INLINE_ELEMENTS = 600
_MAX_STYLE_TAGS = 6
_MAX_STYLE_LENGTH = 40_000
_MAX_MATCHES_PER_BLOCK = 500

_WEIGHT_THEME_COLOR = 8
_WEIGHT_INLINE_PROMINENT = 6
_WEIGHT_INLINE = 3
_WEIGHT_BRAND_VARIABLE = 6
_WEIGHT_VARIABLE = 2
_WEIGHT_STYLESHEET = 1

# Max channel spread for a color to count as grey
_GRAYSCALE_SPREAD = 15

_PROMINENT_SELECTOR = (
    "header, nav, .header, .navbar, .site-header, #header, #masthead, .hero, "
    '[class*="hero"], .wp-block-cover, .wp-block-cover-image'
)

_HEX_RE = re.compile(r"#([0-9a-f]{6}|[0-9a-f]{3})\b", re.I)
_RGB_RE = re.compile(
    r"rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})(?:\s*,\s*(?:0|0?\.\d+|1(?:\.0)?))?\s*\)",
    re.I,
)
_HSL_RE = re.compile(
    r"hsla?\(\s*(\d{1,3})\s*,\s*(\d{1,3})%\s*,\s*(\d{1,3})%(?:\s*,\s*(?:0|0?\.\d+|1(?:\.0)?))?\s*\)",
    re.I,
)
_CSS_VAR_RE = re.compile(r"(--[a-z0-9_-]+)\s*:\s*([^;]+);", re.I)
_BRAND_VAR_RE = re.compile(r"primary|accent|brand|theme|palette|color", re.I)


def _clamp(channel: int) -> int:
    return max(0, min(255, channel))


def _rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{_clamp(r):02x}{_clamp(g):02x}{_clamp(b):02x}"


def _expand_hex(value: str) -> str:
    digits = value.lstrip("#").lower()
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return f"#{digits}"


def normalize_color(raw: str | None) -> str | None:
    """Lowercase ``#rrggbb`` for hex, ``rgb()`` and ``hsl()`` input, else ``None``."""
    if not raw:
        return None
    value = raw.strip().lower()
    if value in ("transparent", "inherit", "currentcolor"):
        return None

    if match := _HEX_RE.fullmatch(value):
        return _expand_hex(match.group(0))
    if match := _RGB_RE.fullmatch(value):
        r, g, b = (int(match.group(i)) for i in (1, 2, 3))
        return _rgb_to_hex(r, g, b)
    if match := _HSL_RE.fullmatch(value):
        h, s, l = (int(match.group(i)) for i in (1, 2, 3))
        # colorsys takes hue, lightness, saturation in 0..1
        r, g, b = colorsys.hls_to_rgb((h % 360) / 360, l / 100, s / 100)
        return _rgb_to_hex(round(r * 255), round(g * 255), round(b * 255))
    return None


def is_grayscale(hex_color: str) -> bool:
    r, g, b = (int(hex_color[i : i + 2], 16) for i in (1, 3, 5))
    return max(r, g, b) - min(r, g, b) <= _GRAYSCALE_SPREAD


def _color_tokens(css: str) -> list[str]:
    tokens: list[str] = []
    for pattern in (_HEX_RE, _RGB_RE, _HSL_RE):
        for i, match in enumerate(pattern.finditer(css)):
            if i >= _MAX_MATCHES_PER_BLOCK:
                break
            tokens.append(match.group(0))
    return tokens


class _ColorScores:
    def __init__(self) -> None:
        self.scores: Counter[str] = Counter()

    def add(self, raw: str | None, weight: int) -> None:
        color = normalize_color(raw)
        if color is None or color in ("#ffffff", "#000000") or is_grayscale(color):
            return
        self.scores[color] += weight

    def add_all(self, css: str, weight: int) -> None:
        for token in _color_tokens(css):
            self.add(token, weight)

    def ranked(self) -> list[str]:
        # Counter.most_common keeps first-seen order among equal scores
        return [color for color, _ in self.scores.most_common()]


def extract_brand_colors(soup: BeautifulSoup) -> list[str]:
    """Top brand colors, strongest first.

    ``theme-color`` meta tags weigh most, then inline styles (doubled inside
    header, nav and hero areas), then CSS variables with brand-like names,
    then any color in a stylesheet. Whites, blacks and greys are ignored.
    """
    scores = _ColorScores()

    prominent = {id(el) for el in soup.select(_PROMINENT_SELECTOR)}
    for i, el in enumerate(soup.select("[style]")):
        if i >= _MAX_INLINE_ELEMENTS:
            break
        style = el.get("style", "")[:_MAX_STYLE_LENGTH].lower()
        weight = _WEIGHT_INLINE_PROMINENT if id(el) in prominent else _WEIGHT_INLINE
        scores.add_all(style, weight)

    for style_tag in soup.find_all("style")[:_MAX_STYLE_TAGS]:
        css = style_tag.get_text()[:_MAX_STYLE_LENGTH].lower()
        for i, match in enumerate(_CSS_VAR_RE.finditer(css)):
            if i >= _MAX_MATCHES_PER_BLOCK:
                break
            name, value = match.group(1), match.group(2).strip()
            weight = _WEIGHT_BRAND_VARIABLE if _BRAND_VAR_RE.search(name) else _WEIGHT_VARIABLE
            scores.add_all(value, weight)
        scores.add_all(css, _WEIGHT_STYLESHEET)

    for meta in soup.find_all("meta", attrs={"name": "theme-color"}):
        scores.add(meta.get("content"), _WEIGHT_THEME_COLOR)

    ranked = scores.ranked()
    if ranked:
        return ranked[:MAX_COLORS]
    return _plain_hex_colors(soup)


def _plain_hex_colors(soup: BeautifulSoup) -> list[str]:
    """Unweighted hex colors from styles, used when scoring found nothing."""
    seen: list[str] = []
    sources = [tag.get_text() for tag in soup.find_all("style")]
    sources += [el.get("style", "") for el in soup.select("[style]")]
    for css in sources:
        for match in _HEX_RE.finditer(css):
            color = _expand_hex(match.group(0))
            if color not in seen and color not in ("#ffffff", "#000000"):
                seen.append(color)
    return seen[:MAX_COLORS]
