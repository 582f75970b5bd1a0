"""Minimum-data predicates used to accept or reject extraction output."""

from collections.abc import Callable
from typing import Any

from site_extraction.schemas.business import ExtractedBusinessInfo, StructuredContent
from site_extraction.schemas.extraction import (
    ContactExtraction,
    ContentExtraction,
    ImageExtraction,
    PhaseName,
    SocialMediaExtraction,
    SocialProofExtraction,
    VisualBrandAnalysis,
)


def has_brand_data(data: VisualBrandAnalysis) -> bool:
    return bool(data.brand_colors)


def has_contact_data(data: ContactExtraction) -> bool:
    return bool(data.emails or data.phones or data.addresses)


def has_content_data(data: ContentExtraction) -> bool:
    return bool(data.site_title or data.business_description or data.key_features)


def has_structured_content(content: StructuredContent | None) -> bool:
    if content is None:
        return False
    return bool(
        content.business_hours
        or content.services
        or content.testimonials
        or content.faq
        or content.product_categories
        or content.footer_content
    )


def has_social_proof_data(data: SocialProofExtraction) -> bool:
    return has_structured_content(data.structured_content)


def has_image_data(data: ImageExtraction) -> bool:
    return bool(data.images)


def has_social_media_data(data: SocialMediaExtraction) -> bool:
    return bool(data.social_links)


PHASE_GATES: dict[PhaseName, Callable[[Any], bool]] = {
    PhaseName.phase1: has_brand_data,
    PhaseName.phase2a: has_contact_data,
    PhaseName.phase2b: has_content_data,
    PhaseName.phase2c: has_social_proof_data,
    PhaseName.phase2d: has_image_data,
    PhaseName.phase2e: has_social_media_data,
}


def passes_gate(phase: PhaseName, data: Any, threshold: float) -> bool:
    """Phase-specific minimum data AND self-reported confidence at or above ``threshold``."""
    if data is None:
        return False
    return PHASE_GATES[phase](data) and data.confidence >= threshold


def has_contact_info(info: ExtractedBusinessInfo) -> bool:
    return bool(info.emails or info.phones or info.addresses)


def has_branding(info: ExtractedBusinessInfo) -> bool:
    return bool(info.brand_colors or info.logo_url)


def has_content(info: ExtractedBusinessInfo) -> bool:
    return bool(info.site_title or info.business_description or info.key_features)


def has_minimum_data(info: ExtractedBusinessInfo) -> bool:
    """At least two of contact, branding and content are present."""
    found = [has_contact_info(info), has_branding(info), has_content(info)]
    return sum(found) >= 2
