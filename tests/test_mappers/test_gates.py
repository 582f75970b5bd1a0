import pytest

from site_extraction.mappers.gates import has_minimum_data, passes_gate
from site_extraction.schemas.business import ExtractedBusinessInfo
from site_extraction.schemas.extraction import (
    ContactExtraction,
    ContentExtraction,
    ImageExtraction,
    PhaseName,
    SocialMediaExtraction,
    SocialProofExtraction,
    VisualBrandAnalysis,
)


@pytest.mark.parametrize(
    ("phase", "data", "expected"),
    [
        (PhaseName.phase1, VisualBrandAnalysis(brand_colors=["#e91e63"], confidence=0.3), True),
        (PhaseName.phase1, VisualBrandAnalysis(brand_colors=["#e91e63"], confidence=0.29), False),
        (PhaseName.phase1, VisualBrandAnalysis(fonts=["Lora"], confidence=0.9), False),
        (PhaseName.phase2a, ContactExtraction(phones=["555 0100"], confidence=0.5), True),
        (PhaseName.phase2a, ContactExtraction(confidence=0.9), False),
        (PhaseName.phase2b, ContentExtraction(key_features=["Fast"], confidence=0.5), True),
        (PhaseName.phase2b, ContentExtraction(tagline="Only a tagline", confidence=0.9), False),
        (
            PhaseName.phase2c,
            SocialProofExtraction.model_validate(
                {"structured_content": {"faq": [{"question": "Q?", "answer": "A"}]}, "confidence": 0.5}
            ),
            True,
        ),
        (PhaseName.phase2c, SocialProofExtraction(structured_content={}, confidence=0.9), False),
        (PhaseName.phase2d, ImageExtraction(images=[{"url": "/a.jpg"}], confidence=0.5), True),
        (PhaseName.phase2d, ImageExtraction(confidence=0.9), False),
        (
            PhaseName.phase2e,
            SocialMediaExtraction(social_links=[{"platform": "x", "url": "https://x.com/a"}], confidence=0.5),
            True,
        ),
        (PhaseName.phase2e, SocialMediaExtraction(confidence=0.9), False),
    ],
)
def test_passes_gate(phase, data, expected):
    assert passes_gate(phase, data, 0.3) is expected


def test_passes_gate_without_data():
    assert passes_gate(PhaseName.phase1, None, 0.0) is False


@pytest.mark.parametrize(
    ("info", "expected"),
    [
        (ExtractedBusinessInfo(emails=["a@b.test"], logo_url="https://b.test/logo.png"), True),
        (ExtractedBusinessInfo(phones=["555 0100"], site_title="Acme"), True),
        (ExtractedBusinessInfo(brand_colors=["#e91e63"], key_features=["Fast"]), True),
        (ExtractedBusinessInfo(emails=["a@b.test"], phones=["555 0100"]), False),
        (ExtractedBusinessInfo(tagline="Only a tagline"), False),
        (ExtractedBusinessInfo(), False),
    ],
)
def test_has_minimum_data(info, expected):
    assert has_minimum_data(info) is expected
