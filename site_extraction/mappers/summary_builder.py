from site_extraction.schemas.business import ExtractedBusinessInfo
from site_extraction.schemas.pages import PageType
from site_extraction.services.html_preprocessor import PREVIEW_CHARS, preview

_MAX_KEY_FEATURES = 5


def _page_label(page_type: PageType) -> str:
    return f"{page_type.value.capitalize()} page"


def build_content_summary(
    info: ExtractedBusinessInfo,
    page_contents: dict[PageType, str],
) -> str:
    """Plain-text digest of the profile for downstream generation prompts."""
    lines: list[str] = []

    if info.site_title:
        lines.append(f"Site: {info.site_title}")

    hero = info.hero_section
    if hero:
        if hero.headline:
            lines.append(f"Headline: {hero.headline}")
        if hero.subheadline:
            lines.append(f"Subheadline: {hero.subheadline}")
        if hero.cta_text:
            cta = f"{hero.cta_text} ({hero.cta_link})" if hero.cta_link else hero.cta_text
            lines.append(f"Call to action: {cta}")

    if info.tagline:
        lines.append(f"Tagline: {info.tagline}")
    if info.business_description:
        lines.append(f"Description: {info.business_description}")

    if info.key_features:
        lines.append("Key features:")
        lines.extend(f"- {feature}" for feature in info.key_features[:_MAX_KEY_FEATURES])

    for page_type, text in page_contents.items():
        lines.append("")
        lines.append(f"[{_page_label(page_type)}]")
        lines.append(preview(text, PREVIEW_CHARS))

    return "\n".join(lines).strip()
