from typing import Any, NamedTuple

from site_extraction.schemas.business import ExtractedBusinessInfo
from site_extraction.schemas.extraction import PhaseName

# Each profile path is owned by exactly one phase, so merge order never matters
PHASE_FIELDS: dict[PhaseName, tuple[str, ...]] = {
    PhaseName.phase1: (
        "brand_colors", "fonts", "typography", "design_tokens", "visual_style", "logo_url",
    ),
    PhaseName.phase2a: ("emails", "phones", "addresses", "hours", "coordinates"),
    PhaseName.phase2b: (
        "site_title", "site_description", "favicon", "tagline", "business_description",
        "key_features", "hero_section.headline", "hero_section.subheadline",
        "hero_section.cta_text", "hero_section.cta_link", "page_content",
    ),
    PhaseName.phase2c: (
        "structured_content.business_hours", "structured_content.services",
        "structured_content.testimonials", "structured_content.faq",
        "structured_content.product_categories", "structured_content.footer_content",
    ),
    PhaseName.phase2d: ("hero_section.background_image", "hero_images", "images", "galleries"),
    PhaseName.phase2e: ("social_links",),
}


class SourcedValue(NamedTuple):
    value: Any
    source: str  # phase name, or "fallback"


Layer = tuple[ExtractedBusinessInfo, str]


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def get_path(info: ExtractedBusinessInfo, path: str) -> Any:
    value: Any = info
    for part in path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    return value


class FieldMerger:
    """Builds one profile from per-phase candidate layers, recording who supplied what."""

    def __init__(self) -> None:
        self._fields: dict[str, SourcedValue] = {}

    def offer(self, paths: tuple[str, ...], layers: list[Layer]) -> None:
        """For each path keep the first non-empty value across ``layers``, in order."""
        for path in paths:
            for info, source in layers:
                value = get_path(info, path)
                if not _is_empty(value):
                    self._fields[path] = SourcedValue(value, source)
                    break

    @property
    def provenance(self) -> dict[str, SourcedValue]:
        return dict(sorted(self._fields.items()))

    def sources(self) -> dict[str, str]:
        return {path: sourced.source for path, sourced in self.provenance.items()}

    def build(self) -> ExtractedBusinessInfo:
        data: dict[str, Any] = {}
        for path, sourced in self.provenance.items():
            head, _, tail = path.partition(".")
            if tail:
                data.setdefault(head, {})[tail] = sourced.value
            else:
                data[head] = sourced.value
        return ExtractedBusinessInfo.model_validate(data)
