from site_extraction.mappers.summary_builder import build_content_summary
from site_extraction.schemas.business import ExtractedBusinessInfo, HeroSection
from site_extraction.schemas.pages import PageType


def test_summary_lists_profile_and_pages():
    info = ExtractedBusinessInfo(
        site_title="Acme Flowers",
        tagline="Grown, not flown",
        business_description="Family-run florist.",
        hero_section=HeroSection(headline="Fresh Flowers", cta_text="Shop now", cta_link="https://acme.test/shop"),
        key_features=[f"Feature {i}" for i in range(8)],
    )

    summary = build_content_summary(info, {PageType.about: "word " * 200})
    lines = summary.splitlines()

    assert lines[0] == "Site: Acme Flowers"
    assert "Headline: Fresh Flowers" in lines
    assert "Call to action: Shop now (https://acme.test/shop)" in lines
    assert "Tagline: Grown, not flown" in lines
    assert "- Feature 4" in lines
    assert "- Feature 5" not in lines
    assert "[About page]" in lines
    assert len(lines[-1]) <= 500
    assert lines[-1].endswith("...")


def test_summary_empty_profile():
    assert build_content_summary(ExtractedBusinessInfo(), {}) == ""
