"""Reduce raw HTML to bounded, phase-specific payloads.

``visual`` keeps structure and styling for brand analysis, ``text`` keeps
readable copy for the content phases, ``image`` keeps structure plus every
attribute that can carry an image URL. All functions here are pure.
"""

import re
from typing import Literal
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment
from bs4.element import Script, Stylesheet

Mode = Literal["visual", "text", "image"]

MODE_MAX_BYTES: dict[str, int] = {
    "visual": 40_000,
    "text": 20_000,
    "image": 60_000,
}
PREVIEW_CHARS = 500
MIN_MAIN_CONTENT_CHARS = 100

_TEXT_STRIP_TAGS = (
    "script", "style", "nav", "header", "footer", "iframe", "noscript", "svg", "template",
)
_MARKUP_STRIP_TAGS = ("script", "noscript", "iframe", "template", "object", "embed", "canvas")
_MAIN_CANDIDATES = ("main", "[role=main]", "#content", ".content", "article")

_VISUAL_ATTRS = frozenset({
    "class", "id", "style", "role", "rel", "href", "src", "alt", "name", "content", "property",
})
_IMAGE_ATTRS = _VISUAL_ATTRS | {"srcset", "sizes", "width", "height", "type", "media"}
_IMAGE_DATA_ATTR_RE = re.compile(r"^data-.*(src|bg|background|image|img|lazy|url|poster)", re.I)
_KEPT_META_RE = re.compile(r"^(theme-color|og:image|og:site_name|msapplication-tilecolor)$", re.I)

_STYLE_BLOCK_CHARS = 8_000
_TEXT_NODE_CHARS = {"visual": 80, "image": 40}
_DATA_URI_CHARS = 64

_SOCIAL_HREF_RE = re.compile(
    r"(facebook|instagram|twitter|linkedin|tiktok|youtube|pinterest|snapchat|yelp)\.com/"
    r"|//(www\.)?x\.com/|wa\.me/|api\.whatsapp\.com/",
    re.I,
)

_HSPACE_RE = re.compile(r"[ \t\r\f\v\u00a0]+")
_ANY_SPACE_RE = re.compile(r"\s+")


def reduce(html: str, mode: Mode, *, base_url: str | None = None) -> str:
    """Reduce ``html`` for one extraction phase, capped at ``MODE_MAX_BYTES[mode]``."""
    if mode not in MODE_MAX_BYTES:
        raise ValueError(f"Unknown preprocessing mode: {mode!r}")
    if not html or not html.strip():
        return ""
    html = valid_utf8(html)

    soup = BeautifulSoup(html, "html.parser")
    if mode == "text":
        reduced = _reduce_text(soup, base_url)
        return truncate_utf8(reduced, MODE_MAX_BYTES[mode])

    reduced = _reduce_markup(soup, mode)
    return truncate_utf8(reduced, MODE_MAX_BYTES[mode], markup=True)


def clean_page_text(html: str) -> str:
    """Main readable text of a page, whitespace-normalized, without any header block."""
    if not html or not html.strip():
        return ""
    html = valid_utf8(html)
    soup = BeautifulSoup(html, "html.parser")
    return _main_text(soup)


def valid_utf8(text: str) -> str:
    """Replace lone surrogates so ``text`` always encodes as UTF-8."""
    return text.encode("utf-8", "replace").decode("utf-8")


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Single-line preview of ``text`` no longer than ``limit`` characters."""
    flat = _ANY_SPACE_RE.sub(" ", text).strip()
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3].rstrip() + "..."


def truncate_utf8(text: str, max_bytes: int, *, markup: bool = False) -> str:
    """Cut ``text`` to at most ``max_bytes`` UTF-8 bytes at a safe boundary."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text

    # Dropping the incomplete trailing sequence keeps the result valid UTF-8
    cut = encoded[:max_bytes].decode("utf-8", errors="ignore")
    if markup:
        tag_open = cut.rfind("<")
        if tag_open > cut.rfind(">"):
            cut = cut[:tag_open]
        amp = cut.rfind("&")
        if amp > cut.rfind(";") and len(cut) - amp <= 10:
            cut = cut[:amp]
    return cut.rstrip()


def normalize_text(text: str) -> str:
    lines = (_HSPACE_RE.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def _reduce_text(soup: BeautifulSoup, base_url: str | None) -> str:
    title = soup.title.get_text(strip=True) if soup.title else ""
    description = ""
    meta = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    if meta and meta.get("content"):
        description = meta["content"].strip()

    # Collected before stripping: footers and headers usually hold them
    links = _contact_links(soup, base_url)
    content = _main_text(soup)

    parts: list[str] = []
    if title:
        parts.append(f"Title: {title}")
    if description:
        parts.append(f"Description: {description}")
    if links:
        parts.append("Links:\n" + "\n".join(links))
    if content:
        parts.append("Content:\n" + content)
    return normalize_text("\n".join(parts))


def _contact_links(soup: BeautifulSoup, base_url: str | None) -> list[str]:
    seen: set[str] = set()
    links: list[str] = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        lower = href.lower()
        if not (lower.startswith(("mailto:", "tel:")) or _SOCIAL_HREF_RE.search(href)):
            continue
        if base_url and not lower.startswith(("mailto:", "tel:")):
            try:
                href = urljoin(base_url, href)
            except ValueError:
                continue
        if href in seen:
            continue
        seen.add(href)
        label = a.get_text(" ", strip=True)
        links.append(f"{label} <{href}>" if label else href)
    return links


def _main_text(soup: BeautifulSoup) -> str:
    for tag in soup.find_all(_TEXT_STRIP_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    best = ""
    for selector in _MAIN_CANDIDATES:
        for element in soup.select(selector):
            text = normalize_text(element.get_text(separator="\n"))
            if len(text) > len(best):
                best = text
    if len(best) >= MIN_MAIN_CONTENT_CHARS:
        return best

    root = soup.body or soup
    return normalize_text(root.get_text(separator="\n"))


def _reduce_markup(soup: BeautifulSoup, mode: Mode) -> str:
    for tag in soup.find_all(_MARKUP_STRIP_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for svg in soup.find_all("svg"):
        svg.clear()
    for meta in soup.find_all("meta"):
        key = meta.get("name") or meta.get("property") or ""
        if not _KEPT_META_RE.match(key):
            meta.decompose()

    allowed = _IMAGE_ATTRS if mode == "image" else _VISUAL_ATTRS
    for tag in soup.find_all(True):
        kept = {}
        for name, value in tag.attrs.items():
            if name in allowed or (mode == "image" and _IMAGE_DATA_ATTR_RE.match(name)):
                if isinstance(value, str) and value.startswith("data:") and len(value) > _DATA_URI_CHARS:
                    value = value[:_DATA_URI_CHARS] + "..."
                kept[name] = value
        tag.attrs = kept

    text_limit = _TEXT_NODE_CHARS[mode]
    for node in soup.find_all(string=True):
        if isinstance(node, Script):
            continue
        if isinstance(node, Stylesheet):
            if len(node) > _STYLE_BLOCK_CHARS:
                node.replace_with(node[:_STYLE_BLOCK_CHARS])
            continue
        stripped = node.strip()
        if len(stripped) > text_limit:
            node.replace_with(stripped[:text_limit] + "...")

    return _ANY_SPACE_RE.sub(" ", str(soup)).strip()
