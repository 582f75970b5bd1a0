import itertools

from site_extraction.mappers.field_merger import PHASE_FIELDS, FieldMerger, get_path
from site_extraction.schemas.business import ExtractedBusinessInfo, HeroSection, SocialLink
from site_extraction.schemas.extraction import PhaseName


def test_first_non_empty_layer_wins():
    llm = ExtractedBusinessInfo(brand_colors=["#e91e63"], fonts=[])
    fallback = ExtractedBusinessInfo(brand_colors=["#000fff"], fonts=["Lora"], logo_url="https://acme.test/logo.png")

    merger = FieldMerger()
    merger.offer(PHASE_FIELDS[PhaseName.phase1], [(llm, "phase1"), (fallback, "fallback")])
    info = merger.build()

    assert info.brand_colors == ["#e91e63"]
    assert info.fonts == ["Lora"]
    assert info.logo_url == "https://acme.test/logo.png"
    assert merger.sources() == {
        "brand_colors": "phase1",
        "fonts": "fallback",
        "logo_url": "fallback",
    }


def test_blank_strings_count_as_empty():
    llm = ExtractedBusinessInfo(site_title="   ")
    fallback = ExtractedBusinessInfo(site_title="Acme Flowers")

    merger = FieldMerger()
    merger.offer(PHASE_FIELDS[PhaseName.phase2b], [(llm, "phase2b"), (fallback, "fallback")])

    assert merger.build().site_title == "Acme Flowers"


def test_nested_hero_fields_from_two_phases():
    content = ExtractedBusinessInfo(hero_section=HeroSection(headline="Fresh Flowers", cta_text="Shop"))
    images = ExtractedBusinessInfo(hero_section=HeroSection(background_image="https://acme.test/hero.jpg"))

    merger = FieldMerger()
    merger.offer(PHASE_FIELDS[PhaseName.phase2b], [(content, "phase2b")])
    merger.offer(PHASE_FIELDS[PhaseName.phase2d], [(images, "fallback")])
    info = merger.build()

    assert info.hero_section == HeroSection(
        headline="Fresh Flowers", cta_text="Shop", background_image="https://acme.test/hero.jpg"
    )
    assert merger.sources()["hero_section.headline"] == "phase2b"
    assert merger.sources()["hero_section.background_image"] == "fallback"


def test_phase_order_does_not_matter():
    full = ExtractedBusinessInfo(
        site_title="Acme Flowers",
        emails=["hello@acme.test"],
        brand_colors=["#e91e63"],
        social_links=[SocialLink(platform="instagram", url="https://instagram.com/acme")],
        hero_section=HeroSection(headline="Fresh", background_image="https://acme.test/h.jpg"),
    )
    offers = [(PHASE_FIELDS[phase], [(full, phase.value)]) for phase in PhaseName]

    built = set()
    for ordering in itertools.permutations(offers):
        merger = FieldMerger()
        for paths, layers in ordering:
            merger.offer(paths, layers)
        built.add((merger.build().model_dump_json(), tuple(merger.sources().items())))

    assert len(built) == 1


def test_phase_fields_are_disjoint():
    paths = [path for fields in PHASE_FIELDS.values() for path in fields]
    assert len(paths) == len(set(paths))


def test_empty_merge():
    merger = FieldMerger()
    assert merger.build() == ExtractedBusinessInfo()
    assert merger.sources() == {}


def test_get_path():
    info = ExtractedBusinessInfo(hero_section=HeroSection(headline="Hi"))
    assert get_path(info, "hero_section.headline") == "Hi"
    assert get_path(info, "structured_content.faq") is None
