import json
import logging
import re
from collections import Counter, deque
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from site_extraction.schemas.business import (
    BusinessHoursEntry,
    Coordinates,
    DayHours,
    ExtractedBusinessInfo,
    ExtractedImage,
    FAQItem,
    FooterContent,
    FooterLink,
    Gallery,
    GalleryImage,
    HeroSection,
    ImageDimensions,
    PageContent,
    ProductCategory,
    Service,
    SocialLink,
    StructuredContent,
    Testimonial,
)
from site_extraction.services.brand_colors import extract_brand_colors
from site_extraction.services.html_preprocessor import clean_page_text, valid_utf8

logger = logging.getLogger(__name__)

_MAX_EMAILS = 5
_MAX_PHONES = 3
_MAX_ADDRESSES = 3
_MAX_FEATURES = 15
_MAX_FONTS = 5
_MAX_IMAGES = 40
_MAX_MAIN_CONTENT = 8000
_MAX_FOOTER_TEXT = 2000

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")

_BLOCKED_EMAIL_DOMAINS = frozenset({
    "example.com", "sentry.io", "wixpress.com", "w3.org", "domain.com", "email.com",
})
_BLOCKED_EMAIL_PREFIXES = frozenset({
    "noreply", "no-reply", "webmaster", "postmaster", "mailer-daemon", "abuse",
})
_IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")

# Email preference ranking (lower = better)
_EMAIL_RANK = {
    "info": 0, "hello": 0, "contact": 1, "office": 2, "sales": 3, "support": 4,
}

_SOCIAL_DOMAINS: dict[str, tuple[str, ...]] = {
    "facebook": ("facebook.com", "fb.com"),
    "twitter": ("twitter.com", "x.com"),
    "instagram": ("instagram.com",),
    "linkedin": ("linkedin.com",),
    "youtube": ("youtube.com", "youtu.be"),
    "pinterest": ("pinterest.com",),
    "tiktok": ("tiktok.com",),
}
_SHARE_PATH_RE = re.compile(r"sharer|/share\b|/intent/|/shareArticle|/pin/create", re.I)
_SOCIAL_PATH_PREFIXES = frozenset({"pages", "company", "in", "channel", "user", "c", "pg"})

_ADDRESS_SELECTORS = (
    '[class*="address"]', '[id*="address"]', "address", '[class*="location"]',
    '[id*="location"]', 'footer [class*="contact"]', ".footer-info", ".store-location",
)
_ADDRESS_WORDS_RE = re.compile(
    r"street|st\b|avenue|ave\b|road|rd\b|boulevard|blvd|drive|dr\b|lane|ln\b|way|circle|"
    r"court|place|plaza",
    re.I,
)

_LOGO_SELECTORS = (
    'img[class*="logo"]', 'img[id*="logo"]', ".logo img", "#logo img", "header img",
    ".site-logo img", '[class*="brand"] img', 'a[class*="logo"] img', 'a[id*="logo"] img',
    ".navbar-brand img", ".site-header img", '[class*="header"] img[class*="logo"]',
    "h1 img", ".brand img", 'img[alt*="logo" i]', 'img[title*="logo" i]',
    '[class*="masthead"] img', ".site-title img", ".company-logo img",
)
_PLACEHOLDER_RE = re.compile(r"placeholder|loading|spinner|blank|transparent", re.I)

_FEATURE_SELECTORS = (
    '[class*="feature"] li', '[class*="benefit"] li', '[class*="service"] li',
    '[class*="highlight"] li', '[class*="offer"] li', ".why-us li", ".reasons li",
    '[class*="advantage"] li', '[class*="specialt"] li',
)
_DESCRIPTION_SELECTORS = (
    '[class*="description"]', '[class*="about"] p', '[class*="intro"] p',
    '[class*="welcome"] p', ".about-us p", "#about p", "main p",
)
_TAGLINE_SELECTORS = ('[class*="tagline"]', '[class*="slogan"]', '[class*="motto"]')

_HERO_SELECTORS = (
    ".hero", "#hero", '[class*="hero"]', ".banner", ".jumbotron", ".header-content",
    ".masthead", '[class*="landing"]', '[class*="showcase"]', "header section",
    "main > section", "section:first-of-type",
)
_SUBTITLE_SELECTORS = (
    '[class*="subtitle"]', '[class*="tagline"]', '[class*="subhead"]', '[class*="lead"]',
    "h1 + p", "h2 + p", "p",
)
_CTA_SELECTORS = (
    "a.btn-primary", "button.btn-primary", "a.button", "button.button", 'a[class*="cta"]',
    'button[class*="cta"]', "a.btn", "button",
)
_GALLERY_SELECTOR = '[class*="gallery"], [class*="carousel"], [class*="slider"], [class*="portfolio"]'
_BG_URL_RE = re.compile(r"background(?:-image)?\s*:[^;]*url\(\s*['\"]?([^'\")]+)['\"]?\s*\)", re.I)
_LAZY_SRC_ATTRS = ("data-src", "data-lazy-src", "data-original", "data-bg", "data-background")

_FONT_FAMILY_RE = re.compile(r"font-family\s*:\s*([^;}{]+)", re.I)
_GENERIC_FONTS = frozenset({
    "serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui", "inherit",
    "initial", "unset", "-apple-system", "blinkmacsystemfont", "ui-sans-serif",
    "ui-serif", "ui-monospace", "emoji",
})

_DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_DAY_ALT = "|".join(_DAY_NAMES) + "|mon|tue|wed|thu|fri|sat|sun"
_TIME = r"\d{1,2}(?::\d{2})?\s*(?:am|pm)?"
_DAY_RANGE_RE = re.compile(
    rf"\b({_DAY_ALT})\s*(?:through|thru|to|-|–)\s*({_DAY_ALT})\s*:?\s*({_TIME})\s*[-–]\s*({_TIME})",
    re.I,
)
_SINGLE_DAY_RE = re.compile(
    rf"\b({_DAY_ALT})\b\s*:?\s*(?:({_TIME})\s*[-–]\s*({_TIME})|(closed))", re.I
)
_HOURS_SELECTORS = (
    ".hours", ".business-hours", '[class*="hours"]', '[id*="hours"]', ".opening-hours",
    ".store-hours", ".operation-hours", ".open-hours", 'footer [class*="hour"]',
    'aside [class*="hour"]', '[class*="schedule"]', '[class*="timing"]',
)

_SERVICE_SELECTORS = (
    ".service-item", ".price-card", ".pricing-item", '[class*="service"]', '[class*="pricing"]',
    '[class*="package"]', '[class*="plan"]', '[class*="product-item"]', '[class*="offering"]',
    ".menu-item", ".treatment", ".program-item", ".course-item",
)
_SERVICE_NAME_SELECTORS = (
    "h2", "h3", "h4", "h5", ".title", ".name", ".service-name", ".item-title",
    ".product-name", ".heading",
)
_PRICE_SELECTORS = (
    ".price", ".cost", '[class*="price"]', ".rate", ".fee", ".amount", '[class*="pricing"]',
)
_DESC_SELECTORS = ("p", ".description", ".desc", ".details", ".info", ".summary", ".content")
_DURATION_RE = re.compile(
    r"(\d+\s*(?:hour|hr|minute|min|day|week|month|session|class|visit)s?)", re.I
)
_LIST_PRICE_RE = re.compile(
    r"^(.+?)\s*[-–:]\s*(\$[\d,]+(?:\.\d{2})?|\d+\s*(?:dollars?|euros?|pounds?))", re.I
)

_TESTIMONIAL_SELECTORS = (
    ".testimonial", ".review", ".feedback", '[class*="testimonial"]', '[class*="review"]',
    '[class*="customer-feedback"]', '[class*="client-review"]', "blockquote", ".quote",
    ".customer-review", ".user-review", ".rating-item",
)
_TESTIMONIAL_AUTHOR_SELECTORS = (
    ".author", ".name", ".customer", ".reviewer", ".client-name", ".user-name", "cite",
    "footer", ".by",
)
_TESTIMONIAL_ROLE_SELECTORS = (
    ".role", ".title", ".company", ".position", ".designation", ".job-title",
)
_RATING_TEXT_RE = re.compile(r"(\d(?:\.\d)?)\s*(?:star|★|⭐|/\s*5)", re.I)

_FAQ_SELECTORS = (
    ".faq-item", '[class*="faq"]', '[class*="question-answer"]', ".accordion-item",
    "details", '[class*="qa-"]',
)
_QUESTION_SELECTORS = ("h3", "h4", "h5", ".question", "summary", '[class*="question"]', "dt")
_ANSWER_SELECTORS = ("p", ".answer", '[class*="answer"]', "dd", ".content")

_CATEGORY_SELECTORS = (
    '[class*="category"]', '[class*="product-type"]', '[class*="collection"]',
    ".catalog-section", '[class*="department"]', ".product-category",
)
_ITEM_COUNT_RE = re.compile(r"(\d+)\s*(?:items?|products?|plants?|varieties)", re.I)
_COPYRIGHT_RE = re.compile(r"©|copyright|\b(19|20)\d{2}\b", re.I)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def _text(el: Tag | None) -> str:
    if el is None:
        return ""
    return _SPACE_RE.sub(" ", el.get_text(" ", strip=True)).strip()


def _first_text(root: Tag, selectors: tuple[str, ...], accept) -> str:
    for selector in selectors:
        found = _text(root.select_one(selector))
        if found and accept(found):
            return found
    return ""


def _resolve(base_url: str, href: str | None) -> str | None:
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith(("data:", "javascript:")):
        return None
    try:
        return urljoin(base_url, href)
    except ValueError:
        # urljoin rejects malformed netlocs such as "http://[oops/"
        return None


def _first_srcset_url(srcset: str) -> str | None:
    candidate = srcset.split(",")[0].split()
    return candidate[0] if candidate else None


def _digits_only(phone: str) -> str:
    return "".join(c for c in phone if c.isdigit())


def _email_rank(email: str) -> int:
    local = email.split("@")[0]
    for prefix, rank in _EMAIL_RANK.items():
        if local.startswith(prefix):
            return rank
    return 99


def _is_blocked_email(email: str) -> bool:
    local, _, domain = email.partition("@")
    if domain in _BLOCKED_EMAIL_DOMAINS or "example" in domain:
        return True
    if email.endswith(_IMAGE_SUFFIXES):
        return True
    return local in _BLOCKED_EMAIL_PREFIXES


def _social_platform(url: str) -> str | None:
    host = urlparse(url).netloc.lower().split(":")[0]
    for prefix in ("www.", "m.", "mobile."):
        host = host.removeprefix(prefix)
    for platform, domains in _SOCIAL_DOMAINS.items():
        if any(host == d or host.endswith("." + d) for d in domains):
            return platform
    return None


def _social_username(url: str) -> str | None:
    segments = [s for s in urlparse(url).path.split("/") if s]
    while segments and segments[0].lower() in _SOCIAL_PATH_PREFIXES:
        segments.pop(0)
    if not segments:
        return None
    return segments[0].lstrip("@") or None


def _schema_types(node: dict) -> set[str]:
    raw = node.get("@type")
    values = raw if isinstance(raw, list) else [raw]
    return {v.rsplit("/", 1)[-1] for v in values if isinstance(v, str)}


def _as_list(value) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _json_ld_nodes(soup: BeautifulSoup) -> list[dict]:
    """Every JSON object found in JSON-LD blocks, in document order."""
    nodes: list[dict] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.get_text())
        except (json.JSONDecodeError, ValueError):
            logger.debug("Skipping malformed JSON-LD block")
            continue
        queue = deque([data])
        while queue:
            item = queue.popleft()
            if isinstance(item, list):
                queue.extend(item)
            elif isinstance(item, dict):
                nodes.append(item)
                queue.extend(v for v in item.values() if isinstance(v, (dict, list)))
    return nodes


class FallbackExtractor:
    """DOM heuristics producing the same profile fields as the inference phases.

    Deterministic and side-effect free: the same HTML and base URL always
    give the same result. Fields with no findings are ``None``.
    """

    def extract_business_info(self, html: str, base_url: str) -> ExtractedBusinessInfo:
        soup = BeautifulSoup(valid_utf8(html or ""), "html.parser")
        ld_nodes = _json_ld_nodes(soup)

        hero_el = self._find_hero(soup)
        hero = self._extract_hero(hero_el, base_url)
        logo_url = self._extract_logo(soup, ld_nodes, base_url)
        images = self._extract_images(soup, base_url, hero_el, logo_url)
        hero_images = [img for img in images if img.type == "hero"]
        gallery_images = [img for img in images if img.type == "gallery"]

        if hero and not hero.background_image and hero_images:
            hero.background_image = hero_images[0].url

        info = ExtractedBusinessInfo(
            site_title=self._extract_site_title(soup, ld_nodes),
            site_description=self._meta_content(soup, "description"),
            favicon=self._extract_favicon(soup, base_url),
            tagline=_first_text(soup, _TAGLINE_SELECTORS, lambda t: 5 < len(t) < 200) or None,
            business_description=self._extract_description(soup, ld_nodes),
            key_features=self._extract_key_features(soup) or None,
            hero_section=hero,
            brand_colors=extract_brand_colors(soup) or None,
            fonts=self._extract_fonts(soup) or None,
            logo_url=logo_url,
            emails=self._extract_emails(soup, ld_nodes) or None,
            phones=self._extract_phones(soup, ld_nodes) or None,
            addresses=self._extract_addresses(soup, ld_nodes) or None,
            hours=self._extract_hours(ld_nodes) or None,
            coordinates=self._extract_coordinates(soup, ld_nodes),
            social_links=self._extract_social_links(soup, ld_nodes, base_url) or None,
            galleries=[self._gallery(gallery_images)] if gallery_images else None,
            hero_images=hero_images or None,
            images=images or None,
            structured_content=self._extract_structured_content(soup, ld_nodes, base_url),
            page_content=self._extract_page_content(soup, html),
        )

        logger.info(
            "Fallback extraction for %s: %d emails, %d phones, %d colors, %d images",
            base_url, len(info.emails or []), len(info.phones or []),
            len(info.brand_colors or []), len(info.images or []),
        )
        return info

    # -- metadata ---------------------------------------------------------

    @staticmethod
    def _meta_content(soup: BeautifulSoup, name: str) -> str | None:
        meta = soup.find("meta", attrs={"name": re.compile(rf"^{re.escape(name)}$", re.I)})
        if meta and meta.get("content", "").strip():
            return meta["content"].strip()
        return None

    @staticmethod
    def _extract_site_title(soup: BeautifulSoup, ld_nodes: list[dict]) -> str | None:
        if soup.title and soup.title.get_text(strip=True):
            return soup.title.get_text(strip=True)
        og = soup.find("meta", attrs={"property": "og:site_name"})
        if og and og.get("content", "").strip():
            return og["content"].strip()
        for node in ld_nodes:
            if _schema_types(node) & {"Organization", "LocalBusiness", "WebSite"}:
                name = node.get("name")
                if isinstance(name, str) and name.strip():
                    return name.strip()
        return None

    @staticmethod
    def _extract_favicon(soup: BeautifulSoup, base_url: str) -> str | None:
        link = soup.find("link", rel=lambda r: r and "icon" in " ".join(_as_list(r)).lower())
        if link is None:
            return None
        return _resolve(base_url, link.get("href"))

    # -- contact ----------------------------------------------------------

    def _extract_emails(self, soup: BeautifulSoup, ld_nodes: list[dict]) -> list[str]:
        found: list[str] = []

        def add(candidate: str) -> None:
            email = candidate.strip().lower()
            if _EMAIL_RE.fullmatch(email) and not _is_blocked_email(email) and email not in found:
                found.append(email)

        for a in soup.select('a[href^="mailto:"]'):
            add(a["href"][len("mailto:"):].split("?")[0])
        for node in ld_nodes:
            for value in _as_list(node.get("email")):
                if isinstance(value, str):
                    add(value.removeprefix("mailto:"))
        body = soup.body or soup
        for match in _EMAIL_RE.findall(body.get_text(" ")):
            add(match)

        # Stable sort keeps document order within a rank
        return sorted(found, key=_email_rank)[:_MAX_EMAILS]

    def _extract_phones(self, soup: BeautifulSoup, ld_nodes: list[dict]) -> list[str]:
        seen_digits: set[str] = set()
        phones: list[str] = []

        def add(candidate: str) -> None:
            phone = _SPACE_RE.sub(" ", candidate).strip()
            digits = _digits_only(phone)
            if len(digits) >= 7 and digits not in seen_digits:
                seen_digits.add(digits)
                phones.append(phone)

        # Priority: tel: links
        for a in soup.select('a[href^="tel:"]'):
            add(a["href"][len("tel:"):])
        for node in ld_nodes:
            for value in _as_list(node.get("telephone")):
                if isinstance(value, str):
                    add(value)
        body = soup.body or soup
        for match in _PHONE_RE.findall(body.get_text(" ")):
            add(match)

        return phones[:_MAX_PHONES]

    def _extract_addresses(self, soup: BeautifulSoup, ld_nodes: list[dict]) -> list[str]:
        addresses: list[str] = []

        def add(address: str) -> None:
            address = _SPACE_RE.sub(" ", address).strip(" ,")
            if address and address not in addresses:
                addresses.append(address)

        for el in soup.select(
            '[itemtype*="schema.org/PostalAddress"], [itemtype*="schema.org/LocalBusiness"]'
        ):
            parts = [
                _text(el.select_one(f'[itemprop="{prop}"]'))
                for prop in ("streetAddress", "addressLocality", "addressRegion", "postalCode")
            ]
            if parts[0] or parts[1]:
                add(", ".join(p for p in parts if p))

        for node in ld_nodes:
            if "PostalAddress" in _schema_types(node):
                parts = [
                    node.get(key)
                    for key in ("streetAddress", "addressLocality", "addressRegion", "postalCode")
                ]
                parts = [str(p) for p in parts if p]
                if parts:
                    add(", ".join(parts))
            elif isinstance(node.get("address"), str):
                add(node["address"])

        for selector in _ADDRESS_SELECTORS:
            for el in soup.select(selector):
                text = _text(el)
                if 10 < len(text) < 300 and re.search(r"\d", text) and _ADDRESS_WORDS_RE.search(text):
                    add(text)

        return addresses[:_MAX_ADDRESSES]

    @staticmethod
    def _extract_hours(ld_nodes: list[dict]) -> dict[str, DayHours]:
        hours: dict[str, DayHours] = {}
        for node in ld_nodes:
            if "OpeningHoursSpecification" not in _schema_types(node):
                continue
            opens, closes = node.get("opens"), node.get("closes")
            for day in _as_list(node.get("dayOfWeek")):
                if not isinstance(day, str):
                    continue
                key = day.rsplit("/", 1)[-1].lower()
                if key in _DAY_NAMES and key not in hours:
                    hours[key] = DayHours(
                        open=str(opens) if opens else None,
                        close=str(closes) if closes else None,
                        closed=not (opens and closes),
                    )
        return hours

    def _extract_coordinates(
        self, soup: BeautifulSoup, ld_nodes: list[dict]
    ) -> Coordinates | None:
        for node in ld_nodes:
            if "latitude" in node and "longitude" in node:
                try:
                    return Coordinates(lat=float(node["latitude"]), lng=float(node["longitude"]))
                except (TypeError, ValueError, ValidationError):
                    continue

        for name, separator in (("geo.position", ";"), ("ICBM", ",")):
            content = self._meta_content(soup, name)
            if content and separator in content:
                lat, _, lng = content.partition(separator)
                try:
                    return Coordinates(lat=float(lat), lng=float(lng))
                except (ValueError, ValidationError):
                    logger.debug("Ignoring malformed %s meta: %s", name, content)
        return None

    def _extract_social_links(
        self, soup: BeautifulSoup, ld_nodes: list[dict], base_url: str
    ) -> list[SocialLink]:
        candidates = [a["href"] for a in soup.find_all("a", href=True)]
        for node in ld_nodes:
            candidates.extend(v for v in _as_list(node.get("sameAs")) if isinstance(v, str))

        # First occurrence per platform wins
        links: dict[str, SocialLink] = {}
        for href in candidates:
            url = _resolve(base_url, href)
            if not url or _SHARE_PATH_RE.search(url):
                continue
            platform = _social_platform(url)
            if platform and platform not in links:
                links[platform] = SocialLink(
                    platform=platform, url=url, username=_social_username(url)
                )
        return list(links.values())

    # -- branding ---------------------------------------------------------

    def _extract_logo(
        self, soup: BeautifulSoup, ld_nodes: list[dict], base_url: str
    ) -> str | None:
        for selector in _LOGO_SELECTORS:
            for img in soup.select(selector):
                url = _resolve(base_url, img.get("src"))
                if not url:
                    continue
                if _PLACEHOLDER_RE.search(url):
                    logger.debug("Skipping placeholder logo candidate %s", url)
                    continue
                return url

        for node in ld_nodes:
            logo = node.get("logo")
            if isinstance(logo, dict):
                logo = logo.get("url")
            if isinstance(logo, str):
                url = _resolve(base_url, logo)
                if url:
                    return url
        return None

    @staticmethod
    def _extract_fonts(soup: BeautifulSoup) -> list[str]:
        counts: Counter[str] = Counter()

        for link in soup.find_all("link", href=True):
            href = link["href"]
            if "fonts.googleapis.com" not in href:
                continue
            try:
                query = urlparse(href).query
            except ValueError:
                continue
            for family in parse_qs(query).get("family", []):
                for part in family.split("|"):
                    name = part.split(":")[0].strip()
                    if name:
                        counts[name] += 2

        css_sources = [tag.get_text() for tag in soup.find_all("style")]
        css_sources += [el.get("style", "") for el in soup.select("[style]")]
        for css in css_sources:
            for match in _FONT_FAMILY_RE.finditer(css):
                first = match.group(1).split(",")[0].strip().strip("'\"").strip()
                if not first or first.lower() in _GENERIC_FONTS or first.startswith("var("):
                    continue
                counts[first] += 1

        return [name for name, _ in counts.most_common(_MAX_FONTS)]

    # -- copy -------------------------------------------------------------

    @staticmethod
    def _extract_key_features(soup: BeautifulSoup) -> list[str]:
        features: list[str] = []
        for selector in _FEATURE_SELECTORS:
            for el in soup.select(selector):
                text = _text(el)
                if 5 < len(text) < 300 and text not in features:
                    features.append(text)
        return features[:_MAX_FEATURES]

    def _extract_description(self, soup: BeautifulSoup, ld_nodes: list[dict]) -> str | None:
        meta = self._meta_content(soup, "description")
        if meta and len(meta) > 20:
            return meta

        schema = _text(soup.select_one(
            '[itemtype*="schema.org/Organization"] [itemprop="description"], '
            '[itemtype*="schema.org/LocalBusiness"] [itemprop="description"]'
        ))
        if len(schema) > 20:
            return schema

        for node in ld_nodes:
            if _schema_types(node) & {"Organization", "LocalBusiness"}:
                desc = node.get("description")
                if isinstance(desc, str) and len(desc.strip()) > 20:
                    return desc.strip()

        return _first_text(soup, _DESCRIPTION_SELECTORS, lambda t: 20 < len(t) < 1000) or None

    @staticmethod
    def _find_hero(soup: BeautifulSoup) -> Tag | None:
        for selector in _HERO_SELECTORS:
            el = soup.select_one(selector)
            if el is not None and el.find(["h1", "h2"]):
                return el
        body = soup.body or soup
        h1 = body.find("h1")
        return h1.parent if h1 is not None else None

    @staticmethod
    def _extract_hero(hero: Tag | None, base_url: str) -> HeroSection | None:
        if hero is None:
            return None

        h1 = _text(hero.find("h1"))
        headline = h1 or _text(hero.find("h2"))
        if not headline:
            return None

        section = HeroSection(headline=headline)
        if h1:
            section.subheadline = _text(hero.find("h2")) or None
        if not section.subheadline:
            section.subheadline = _first_text(
                hero, _SUBTITLE_SELECTORS, lambda t: 10 < len(t) < 200 and t != headline
            ) or None

        for selector in _CTA_SELECTORS:
            cta = hero.select_one(selector)
            cta_text = _text(cta)
            if cta is not None and 2 < len(cta_text) < 50:
                section.cta_text = cta_text
                if cta.name == "a":
                    section.cta_link = _resolve(base_url, cta.get("href"))
                break

        match = _BG_URL_RE.search(hero.get("style", ""))
        if match:
            section.background_image = _resolve(base_url, match.group(1))
        if not section.background_image:
            img = hero.find("img")
            if img is not None:
                section.background_image = _resolve(base_url, img.get("src"))
        return section

    # -- images -----------------------------------------------------------

    def _extract_images(
        self,
        soup: BeautifulSoup,
        base_url: str,
        hero: Tag | None,
        logo_url: str | None,
    ) -> list[ExtractedImage]:
        hero_ids: set[int] = set()
        # A bare top-level h1 makes the whole body the "hero": classify nothing as hero then
        if hero is not None and hero.name not in ("body", "html", "[document]"):
            hero_ids = {id(el) for el in hero.find_all(True)} | {id(hero)}
        gallery_ids = {
            id(el)
            for container in soup.select(_GALLERY_SELECTOR)
            for el in container.find_all(True)
        }

        images: dict[str, ExtractedImage] = {}

        def add(el: Tag, raw: str | None, context: str) -> None:
            url = _resolve(base_url, raw)
            if not url or url in images or len(images) >= _MAX_IMAGES:
                return
            dimensions = self._dimensions(el)
            if dimensions and dimensions.width <= 2 and dimensions.height <= 2:
                return
            if url == logo_url:
                kind = "logo"
            elif id(el) in hero_ids:
                kind = "hero"
            elif id(el) in gallery_ids:
                kind = "gallery"
            else:
                kind = "other"
            images[url] = ExtractedImage(
                url=url,
                type=kind,
                context=context,
                selector=self._selector(el),
                alt=el.get("alt") or None,
                dimensions=dimensions,
            )

        for img in soup.find_all("img"):
            in_picture = img.parent is not None and img.parent.name == "picture"
            if img.get("src") and not img["src"].startswith("data:"):
                add(img, img["src"], "picture-element" if in_picture else "img-tag")
                continue
            lazy = next((img.get(attr) for attr in _LAZY_SRC_ATTRS if img.get(attr)), None)
            if lazy:
                add(img, lazy, "data-attribute")
            elif img.get("srcset"):
                add(img, _first_srcset_url(img["srcset"]), "img-tag")

        for source in soup.select("picture source[srcset]"):
            add(source, _first_srcset_url(source["srcset"]), "picture-element")

        for el in soup.select("[style]"):
            match = _BG_URL_RE.search(el["style"])
            if match:
                add(el, match.group(1), "background-image")

        for el in soup.select("[data-bg], [data-background], [data-background-image]"):
            raw = el.get("data-bg") or el.get("data-background") or el.get("data-background-image")
            add(el, raw, "data-attribute")

        return list(images.values())

    @staticmethod
    def _dimensions(el: Tag) -> ImageDimensions | None:
        width, height = el.get("width", ""), el.get("height", "")
        if str(width).isdecimal() and str(height).isdecimal():
            return ImageDimensions(width=int(width), height=int(height))
        return None

    @staticmethod
    def _selector(el: Tag) -> str:
        if el.get("id"):
            return f"#{el['id']}"
        classes = el.get("class") or []
        return el.name + "".join(f".{c}" for c in classes[:2])

    @staticmethod
    def _gallery(images: list[ExtractedImage]) -> Gallery:
        return Gallery(
            type="grid",
            images=[
                GalleryImage(
                    url=img.url,
                    alt=img.alt,
                    width=img.dimensions.width if img.dimensions else None,
                    height=img.dimensions.height if img.dimensions else None,
                )
                for img in images
            ],
        )

    # -- structured content -----------------------------------------------

    def _extract_structured_content(
        self, soup: BeautifulSoup, ld_nodes: list[dict], base_url: str
    ) -> StructuredContent | None:
        content = StructuredContent(
            business_hours=self._extract_business_hours(soup) or None,
            services=self._extract_services(soup) or None,
            testimonials=self._extract_testimonials(soup) or None,
            faq=self._extract_faq(soup, ld_nodes) or None,
            product_categories=self._extract_product_categories(soup) or None,
            footer_content=self._extract_footer(soup, base_url),
        )
        if not any(getattr(content, field) for field in StructuredContent.model_fields):
            return None
        return content

    def _extract_business_hours(self, soup: BeautifulSoup) -> list[BusinessHoursEntry]:
        entries: list[BusinessHoursEntry] = []
        for el in soup.select('[itemtype*="schema.org/OpeningHoursSpecification"]'):
            day = _text(el.select_one('[itemprop="dayOfWeek"]'))
            opens_el = el.select_one('[itemprop="opens"]')
            closes_el = el.select_one('[itemprop="closes"]')
            opens = (opens_el.get("content") or _text(opens_el)) if opens_el else ""
            closes = (closes_el.get("content") or _text(closes_el)) if closes_el else ""
            if day:
                entries.append(BusinessHoursEntry(
                    day=day,
                    hours=f"{opens} - {closes}" if opens and closes else "Closed",
                    closed=not (opens and closes),
                ))

        if not entries:
            for selector in _HOURS_SELECTORS:
                container = soup.select_one(selector)
                if container is not None:
                    entries = self._hours_from_text(container.get_text(" "))
                    if entries:
                        break

        if not entries:
            body = soup.body or soup
            entries = self._hours_from_text(body.get_text(" "))

        unique = {(e.day, e.hours): e for e in entries}
        return list(unique.values())[:10]

    @staticmethod
    def _hours_from_text(text: str) -> list[BusinessHoursEntry]:
        def full_day(name: str) -> str:
            lower = name.lower()
            return next((d for d in _DAY_NAMES if d.startswith(lower[:3])), lower).capitalize()

        entries: list[BusinessHoursEntry] = []
        for m in _DAY_RANGE_RE.finditer(text):
            entries.append(BusinessHoursEntry(
                day=f"{m.group(1)}-{m.group(2)}", hours=f"{m.group(3)} - {m.group(4)}"
            ))
        remaining = _DAY_RANGE_RE.sub(" ", text)

        seen_days = set()
        for m in _SINGLE_DAY_RE.finditer(remaining):
            day = full_day(m.group(1))
            if day in seen_days:
                continue
            seen_days.add(day)
            if m.group(4):
                entries.append(BusinessHoursEntry(day=day, hours="Closed", closed=True))
            else:
                entries.append(BusinessHoursEntry(day=day, hours=f"{m.group(2)} - {m.group(3)}"))
        return entries

    def _extract_services(self, soup: BeautifulSoup) -> list[Service]:
        services: dict[str, Service] = {}

        for el in soup.select(
            '[itemtype*="schema.org/Service"], [itemtype*="schema.org/Product"], '
            '[itemtype*="schema.org/Offer"]'
        ):
            name = _text(el.select_one('[itemprop="name"]'))
            if name and name not in services:
                services[name] = Service(
                    name=name,
                    description=_text(el.select_one('[itemprop="description"]')) or None,
                    price=_text(el.select_one('[itemprop="price"]')) or None,
                )

        if not services:
            for selector in _SERVICE_SELECTORS:
                for item in soup.select(selector):
                    # Containers of other items are section wrappers, not services
                    if item.select_one(selector):
                        continue
                    service = self._service_from_item(item)
                    if service and service.name not in services:
                        services[service.name] = service
                if len(services) >= 5:
                    break

        if not services:
            for service in self._services_from_tables(soup):
                services.setdefault(service.name, service)

        if not services:
            for item in soup.select(
                'ul.services li, ul.pricing li, [class*="service-list"] li, [class*="offering"] li'
            ):
                text = _text(item)
                match = _LIST_PRICE_RE.match(text)
                if match:
                    services.setdefault(match.group(1).strip(), Service(
                        name=match.group(1).strip(), price=match.group(2).strip()
                    ))
                elif 5 < len(text) < 200:
                    services.setdefault(text, Service(name=text))

        return list(services.values())[:30]

    @staticmethod
    def _service_from_item(item: Tag) -> Service | None:
        name = _first_text(item, _SERVICE_NAME_SELECTORS, lambda t: len(t) < 200)
        price = _first_text(
            item, _PRICE_SELECTORS, lambda t: any(c in t for c in "$€£") or bool(re.search(r"\d", t))
        )
        description = _first_text(
            item, _DESC_SELECTORS, lambda t: 10 < len(t) < 500 and t not in (name, price)
        )
        if not name or not (price or description):
            return None
        duration = _DURATION_RE.search(_text(item))
        return Service(
            name=name,
            description=description or None,
            price=price or None,
            duration=duration.group(1) if duration else None,
        )

    @staticmethod
    def _services_from_tables(soup: BeautifulSoup) -> list[Service]:
        services: list[Service] = []
        for table in soup.find_all("table"):
            lowered = _text(table).lower()
            if not any(word in lowered for word in ("price", "cost", "service", "package", "$")):
                continue
            for row in table.find_all("tr"):
                if row.find("th"):
                    continue
                cells = [_text(c) for c in row.find_all(["td", "th"])]
                if len(cells) < 2:
                    continue
                name, price_cell = cells[0], cells[-1]
                desc = cells[1] if len(cells) > 2 else ""
                if not name or len(name) >= 200 or "total" in name.lower():
                    continue
                has_price = "$" in price_cell or bool(re.search(r"\d", price_cell))
                if has_price or desc:
                    services.append(Service(
                        name=name, description=desc or None, price=price_cell if has_price else None
                    ))
        return services

    def _extract_testimonials(self, soup: BeautifulSoup) -> list[Testimonial]:
        testimonials: list[Testimonial] = []

        for el in soup.select('[itemtype*="schema.org/Review"], [itemtype*="schema.org/UserReview"]'):
            content = _text(el.select_one(
                '[itemprop="reviewBody"], [itemprop="description"], [itemprop="text"]'
            ))
            if len(content) > 10:
                rating_el = el.select_one('[itemprop="ratingValue"]')
                rating_raw = (rating_el.get("content") or _text(rating_el)) if rating_el else ""
                testimonials.append(Testimonial(
                    name=_text(el.select_one('[itemprop="author"], [itemprop="name"]')) or None,
                    content=content,
                    rating=self._parse_rating(rating_raw),
                ))

        if not testimonials:
            for selector in _TESTIMONIAL_SELECTORS:
                for item in soup.select(selector):
                    if item.select_one(selector):
                        continue
                    testimonial = self._testimonial_from_item(item)
                    if testimonial:
                        testimonials.append(testimonial)
                if len(testimonials) >= 5:
                    break

        unique = {t.content[:100]: t for t in testimonials}
        return list(unique.values())[:30]

    def _testimonial_from_item(self, item: Tag) -> Testimonial | None:
        content = _first_text(
            item, ("p", ".content", ".text", ".quote-text", ".review-text", ".message", ".comment"),
            lambda t: len(t) > 20,
        )
        if not content:
            clone = BeautifulSoup(str(item), "html.parser")
            for el in clone.select(".author, .name, .customer, .reviewer, .by, cite, footer"):
                el.decompose()
            content = _text(clone)
        if not 20 < len(content) < 2000:
            return None

        name = ""
        for selector in _TESTIMONIAL_AUTHOR_SELECTORS:
            found = re.sub(r"^(?:[-–—]\s*|by\s+)", "", _text(item.select_one(selector)), flags=re.I)
            if found and len(found) < 100:
                name = found
                break
        role = _first_text(item, _TESTIMONIAL_ROLE_SELECTORS, lambda t: len(t) < 100)

        rating = None
        stars = item.select('[class*="star"], [class*="rating"]')
        filled = [
            s for s in stars
            if any(k in " ".join(s.get("class") or []) for k in ("filled", "active", "full", "checked"))
            or "color" in s.get("style", "")
        ]
        if 0 < len(filled) <= 5:
            rating = float(len(filled))
        if rating is None:
            rated = item if item.get("data-rating") else item.select_one("[data-rating]")
            if rated is not None:
                rating = self._parse_rating(rated.get("data-rating"))
        if rating is None:
            match = _RATING_TEXT_RE.search(_text(item))
            if match:
                rating = self._parse_rating(match.group(1))

        return Testimonial(name=name or None, role=role or None, content=content, rating=rating)

    @staticmethod
    def _parse_rating(raw: str | None) -> float | None:
        try:
            rating = float(raw) if raw else None
        except ValueError:
            return None
        return rating if rating is not None and 0 < rating <= 5 else None

    def _extract_faq(self, soup: BeautifulSoup, ld_nodes: list[dict]) -> list[FAQItem]:
        faqs: list[FAQItem] = []

        for node in ld_nodes:
            if "Question" not in _schema_types(node):
                continue
            answer = node.get("acceptedAnswer")
            answer_text = answer.get("text") if isinstance(answer, dict) else None
            question = node.get("name")
            if isinstance(question, str) and isinstance(answer_text, str):
                faqs.append(FAQItem(
                    question=question.strip(),
                    answer=_SPACE_RE.sub(" ", _TAG_RE.sub(" ", answer_text)).strip(),
                ))

        if not faqs:
            for el in soup.select('[itemtype*="schema.org/Question"]'):
                question = _text(el.select_one('[itemprop="name"]'))
                answer = _text(el.select_one('[itemprop="acceptedAnswer"] [itemprop="text"], [itemprop="text"]'))
                if question and answer:
                    faqs.append(FAQItem(question=question, answer=answer))

        if not faqs:
            for selector in _FAQ_SELECTORS:
                for item in soup.select(selector):
                    question = _first_text(item, _QUESTION_SELECTORS, lambda t: "?" in t)
                    answer = _first_text(
                        item, _ANSWER_SELECTORS, lambda t: len(t) > 10 and t != question
                    )
                    if question and answer:
                        faqs.append(FAQItem(question=question, answer=answer))

        for dl in soup.find_all("dl"):
            for dt, dd in zip(dl.find_all("dt"), dl.find_all("dd")):
                question, answer = _text(dt), _text(dd)
                if question and answer and len(question) < 300 and len(answer) < 1000:
                    faqs.append(FAQItem(question=question, answer=answer))

        unique = {f.question: f for f in faqs}
        return list(unique.values())[:20]

    @staticmethod
    def _extract_product_categories(soup: BeautifulSoup) -> list[ProductCategory]:
        categories: dict[str, ProductCategory] = {}
        for selector in _CATEGORY_SELECTORS:
            for item in soup.select(selector):
                name = _first_text(item, ("h2", "h3", "h4", ".title", ".name", "a"), lambda t: len(t) < 100)
                if not name or name in categories:
                    continue
                count = _ITEM_COUNT_RE.search(_text(item))
                categories[name] = ProductCategory(
                    name=name,
                    description=_text(item.select_one("p, .description")) or None,
                    item_count=int(count.group(1)) if count else None,
                )

        for link in soup.select("nav a, .menu a"):
            text, href = _text(link), link.get("href", "")
            if text and any(k in href for k in ("category", "collection", "products")):
                categories.setdefault(text, ProductCategory(name=text))

        return list(categories.values())[:15]

    @staticmethod
    def _extract_footer(soup: BeautifulSoup, base_url: str) -> FooterContent | None:
        footer = soup.find("footer")
        if footer is None:
            return None

        copyright_text = _first_text(
            footer, (".copyright", '[class*="copyright"]', "p"), lambda t: bool(_COPYRIGHT_RE.search(t))
        )

        links: list[FooterLink] = []
        for a in footer.find_all("a", href=True):
            text, href = _text(a), a["href"]
            if text and not href.startswith(("mailto:", "tel:")):
                url = _resolve(base_url, href)
                if url:
                    links.append(FooterLink(text=text, url=url))

        additional = _text(footer)[:500]
        content = FooterContent(
            copyright_text=copyright_text or None,
            important_links=links[:10] or None,
            additional_info=additional if len(additional) > 50 else None,
        )
        if not (content.copyright_text or content.important_links or content.additional_info):
            return None
        return content

    @staticmethod
    def _extract_page_content(soup: BeautifulSoup, html: str) -> PageContent | None:
        main = clean_page_text(html)[:_MAX_MAIN_CONTENT]
        footer_text = _text(soup.find("footer"))[:_MAX_FOOTER_TEXT]
        sidebar = soup.select_one('aside, .sidebar, [role="complementary"]')
        if not (main or footer_text):
            return None
        return PageContent(
            main_content=main,
            footer_text=footer_text,
            sidebar_content=_text(sidebar)[:_MAX_FOOTER_TEXT] or None,
        )
