"""Inference response shapes for each extraction phase, plus the run envelopes.

Phase 1 is the visual brand analysis (vision model); Phase 2a-2e are the
independent text extractions. Responses are validated leniently: models
self-report their output, so ``null`` lists, numbers where strings are
expected and unknown keys are all tolerated.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from site_extraction.schemas.business import (
    Coordinates,
    DayHours,
    DesignTokens,
    ExtractedImage,
    HeroSection,
    StructuredContent,
    Typography,
    VisualStyle,
)


class PhaseName(StrEnum):
    phase1 = "phase1"  # visual brand analysis
    phase2a = "phase2a"  # contact
    phase2b = "phase2b"  # content / hero
    phase2c = "phase2c"  # social proof / structured data
    phase2d = "phase2d"  # images
    phase2e = "phase2e"  # social media


class _PhaseResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    confidence: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Let field defaults apply when the model answers with explicit nulls
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            conf = float(value)
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(conf):
            return 0.0
        return min(max(conf, 0.0), 1.0)


class VisualBrandAnalysis(_PhaseResponse):
    brand_colors: list[str] = []
    logo_url: str | None = None
    fonts: list[str] = []
    typography: Typography | None = None
    design_tokens: DesignTokens | None = None
    visual_style: VisualStyle | None = None


class ContactSocialLink(BaseModel):
    platform: str
    url: str


class ContactExtraction(_PhaseResponse):
    emails: list[str] = []
    phones: list[str] = []
    addresses: list[str] = []
    hours: dict[str, DayHours] | None = None
    social_links: list[ContactSocialLink] = []
    coordinates: Coordinates | None = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _drop_bad_coordinates(cls, value: Any) -> Any:
        # Out-of-range or non-finite coordinates lose the field, not the phase
        try:
            return Coordinates.model_validate(value) if value is not None else None
        except ValidationError:
            return None


class ContentExtraction(_PhaseResponse):
    site_title: str | None = None
    site_description: str | None = None
    favicon: str | None = None
    business_description: str | None = None
    tagline: str | None = None
    key_features: list[str] = []
    hero_section: HeroSection | None = None
    main_content: str | None = None
    footer_text: str | None = None


class SocialProofExtraction(_PhaseResponse):
    structured_content: StructuredContent | None = None


class ImageExtraction(_PhaseResponse):
    images: list[ExtractedImage] = []


class SocialProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    platform: str
    url: str
    confidence: float = 0.0
    location: str | None = None  # footer | header | content | sidebar | contact
    extraction_method: str | None = None  # direct_link | icon_link | schema_markup | inferred
    username: str | None = None
    notes: str | None = None


class SocialMediaMetadata(BaseModel):
    total_links_found: int = 0
    primary_social_section: str | None = None
    has_structured_data: bool = False
    ambiguous_links: list[str] = []


class SocialMediaExtraction(_PhaseResponse):
    social_links: list[SocialProfile] = []
    extraction_metadata: SocialMediaMetadata | None = None


T = TypeVar("T")


class PhaseResult(BaseModel, Generic[T]):
    """Uniform envelope for every phase, whether served by inference or fallback."""

    phase: PhaseName
    data: T | None = None
    confidence: float = 0.0
    succeeded: bool = False
    used_fallback: bool = False
    errors: list[str] = []
    duration_ms: int = 0
    attempts: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0


class ExtractionMetadata(BaseModel):
    phase1_complete: bool = False
    phase2a_complete: bool = False
    phase2b_complete: bool = False
    phase2c_complete: bool = False
    phase2d_complete: bool = False
    phase2e_complete: bool = False
    success: bool = False
    used_fallback: bool = False
    mode: str = "fallback_only"  # "llm" | "fallback_only"
    duration_ms: int = 0
    estimated_cost_usd: float = 0.0
    phase_confidences: dict[str, float] = Field(default_factory=dict)
    field_sources: dict[str, str] = Field(default_factory=dict)
    fallback_phases: list[str] = []  # phases supplemented or replaced by DOM heuristics
    errors: list[str] = []
    warnings: list[str] = []

    def mark_phase_complete(self, phase: PhaseName) -> None:
        setattr(self, f"{phase.value}_complete", True)
