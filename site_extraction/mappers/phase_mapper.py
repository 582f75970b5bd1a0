"""Convert validated phase responses into partial business profiles."""

from collections.abc import Callable
from typing import Any
from urllib.parse import urljoin

from site_extraction.mappers.gates import has_structured_content
from site_extraction.schemas.business import (
    ExtractedBusinessInfo,
    ExtractedImage,
    Gallery,
    GalleryImage,
    HeroSection,
    PageContent,
    SocialLink,
    StructuredContent,
)
from site_extraction.schemas.extraction import (
    ContactExtraction,
    ContentExtraction,
    ImageExtraction,
    PhaseName,
    SocialMediaExtraction,
    SocialProofExtraction,
    VisualBrandAnalysis,
)
from site_extraction.services.brand_colors import normalize_color


def _dedupe(values: list[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def _absolute(base_url: str, url: str | None) -> str | None:
    if not url or not url.strip() or url.startswith("data:"):
        return None
    try:
        return urljoin(base_url, url.strip())
    except ValueError:
        return None


def map_visual(data: VisualBrandAnalysis, base_url: str) -> ExtractedBusinessInfo:
    colors = _dedupe([normalize_color(c) or c.strip().lower() for c in data.brand_colors])
    return ExtractedBusinessInfo(
        brand_colors=colors or None,
        logo_url=_absolute(base_url, data.logo_url),
        fonts=_dedupe(data.fonts) or None,
        typography=data.typography,
        design_tokens=data.design_tokens,
        visual_style=data.visual_style,
    )


def map_contact(data: ContactExtraction, base_url: str) -> ExtractedBusinessInfo:
    return ExtractedBusinessInfo(
        emails=_dedupe([e.lower() for e in data.emails]) or None,
        phones=_dedupe(data.phones) or None,
        addresses=_dedupe(data.addresses) or None,
        hours={day.lower(): h for day, h in data.hours.items()} if data.hours else None,
        coordinates=data.coordinates,
    )


def map_content(data: ContentExtraction, base_url: str) -> ExtractedBusinessInfo:
    hero = None
    if data.hero_section and data.hero_section.headline:
        # The background image belongs to the image phase
        hero = HeroSection(
            headline=data.hero_section.headline,
            subheadline=data.hero_section.subheadline,
            cta_text=data.hero_section.cta_text,
            cta_link=_absolute(base_url, data.hero_section.cta_link),
        )

    page_content = None
    if data.main_content or data.footer_text:
        page_content = PageContent(
            main_content=data.main_content or "",
            footer_text=data.footer_text or "",
        )

    return ExtractedBusinessInfo(
        site_title=data.site_title or None,
        site_description=data.site_description or None,
        favicon=_absolute(base_url, data.favicon),
        business_description=data.business_description or None,
        tagline=data.tagline or None,
        key_features=_dedupe(data.key_features) or None,
        hero_section=hero,
        page_content=page_content,
    )


def map_social_proof(data: SocialProofExtraction, base_url: str) -> ExtractedBusinessInfo:
    content = data.structured_content
    if not has_structured_content(content):
        return ExtractedBusinessInfo()
    # Empty sections become None so fallback can fill them
    cleaned = StructuredContent(
        **{field: getattr(content, field) or None for field in StructuredContent.model_fields}
    )
    return ExtractedBusinessInfo(structured_content=cleaned)


def map_images(data: ImageExtraction, base_url: str) -> ExtractedBusinessInfo:
    images: dict[str, ExtractedImage] = {}
    for image in data.images:
        url = _absolute(base_url, image.url)
        if url and url not in images:
            images[url] = image.model_copy(update={"url": url})
    if not images:
        return ExtractedBusinessInfo()

    all_images = list(images.values())
    hero_images = sorted(
        (img for img in all_images if img.type == "hero"),
        key=lambda img: img.confidence or 0.0,
        reverse=True,
    )
    gallery = [img for img in all_images if img.type == "gallery"]

    galleries = None
    if gallery:
        galleries = [Gallery(
            type="grid",
            images=[
                GalleryImage(
                    url=img.url,
                    alt=img.alt,
                    width=img.dimensions.width if img.dimensions else None,
                    height=img.dimensions.height if img.dimensions else None,
                )
                for img in gallery
            ],
        )]

    return ExtractedBusinessInfo(
        hero_section=HeroSection(background_image=hero_images[0].url) if hero_images else None,
        hero_images=hero_images or None,
        images=all_images,
        galleries=galleries,
    )


def map_social_media(data: SocialMediaExtraction, base_url: str) -> ExtractedBusinessInfo:
    links: dict[str, SocialLink] = {}
    for profile in data.social_links:
        url = _absolute(base_url, profile.url)
        if url and url not in links:
            links[url] = SocialLink(
                platform=profile.platform.strip().lower(),
                url=url,
                username=profile.username.lstrip("@") if profile.username else None,
            )
    return ExtractedBusinessInfo(social_links=list(links.values()) or None)


PHASE_MAPPERS: dict[PhaseName, Callable[[Any, str], ExtractedBusinessInfo]] = {
    PhaseName.phase1: map_visual,
    PhaseName.phase2a: map_contact,
    PhaseName.phase2b: map_content,
    PhaseName.phase2c: map_social_proof,
    PhaseName.phase2d: map_images,
    PhaseName.phase2e: map_social_media,
}


def map_phase(phase: PhaseName, data: Any, base_url: str) -> ExtractedBusinessInfo:
    if data is None:
        return ExtractedBusinessInfo()
    return PHASE_MAPPERS[phase](data, base_url)
