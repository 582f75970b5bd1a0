from site_extraction.schemas.pages import DiscoveredPage, PageType
from site_extraction.services.html_preprocessor import MIN_MAIN_CONTENT_CHARS, clean_page_text

CANONICAL_PAGES = ("home", "about", "contact", "services", "team", "faq")

# Downstream generation always builds these, discovered or not
_REQUIRED_PAGES = frozenset({"home", "about", "contact"})

_PAGE_KEYS = {
    PageType.homepage: "home",
    PageType.about: "about",
    PageType.contact: "contact",
    PageType.services: "services",
    PageType.team: "team",
    PageType.faq: "faq",
}


def recommend_pages(pages: list[DiscoveredPage]) -> list[str]:
    """Canonically ordered, duplicate-free page list for the site generator."""
    discovered = {_PAGE_KEYS[p.page_type] for p in pages if p.page_type in _PAGE_KEYS}
    wanted = discovered | _REQUIRED_PAGES
    return [page for page in CANONICAL_PAGES if page in wanted]


def collect_page_contents(pages: list[DiscoveredPage]) -> dict[PageType, str]:
    """Cleaned text of every non-homepage page long enough to be useful.

    The first page of each type wins; near-empty pages are dropped.
    """
    contents: dict[PageType, str] = {}
    for page in pages:
        if page.page_type is PageType.homepage or page.page_type in contents:
            continue
        text = clean_page_text(page.html)
        if len(text) >= MIN_MAIN_CONTENT_CHARS:
            contents[page.page_type] = text
    return contents
