from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HeroSection(BaseModel):
    headline: str | None = None
    subheadline: str | None = None
    cta_text: str | None = None
    cta_link: str | None = None
    background_image: str | None = None


class TextStyle(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    font_family: str | None = None
    font_weight: str | None = None
    font_size: str | None = None
    text_color: str | None = None
    line_height: str | None = None


class Typography(BaseModel):
    heading: TextStyle | None = None
    body: TextStyle | None = None
    accent: TextStyle | None = None


class SpacingScale(BaseModel):
    values: list[str] = []
    unit: str = "px"


class DesignTokens(BaseModel):
    spacing: SpacingScale | None = None
    border_radius: list[str] | None = None
    shadows: list[str] | None = None


class VisualStyle(BaseModel):
    theme: str | None = None  # modern | classic | minimal | bold | elegant
    mood: str | None = None


class DayHours(BaseModel):
    open: str | None = None
    close: str | None = None
    closed: bool = False


class Coordinates(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class SocialLink(BaseModel):
    platform: str
    url: str
    username: str | None = None


class GalleryImage(BaseModel):
    url: str
    alt: str | None = None
    width: int | None = None
    height: int | None = None


class Gallery(BaseModel):
    type: str = "grid"  # grid | carousel | masonry | unknown
    title: str | None = None
    columns: int | None = None
    images: list[GalleryImage] = []


class ImageDimensions(BaseModel):
    width: int
    height: int


class ExtractedImage(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    url: str
    type: str = "other"  # hero | gallery | product | feature | team | logo | other
    context: str = "img-tag"  # background-image | css-variable | img-tag | picture-element | data-attribute
    selector: str | None = None
    alt: str | None = None
    dimensions: ImageDimensions | None = None
    confidence: float | None = None


class BusinessHoursEntry(BaseModel):
    day: str
    hours: str
    closed: bool = False


class Service(BaseModel):
    name: str
    description: str | None = None
    price: str | None = None
    duration: str | None = None


class Testimonial(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str | None = None
    role: str | None = None
    content: str
    rating: float | None = None


class FAQItem(BaseModel):
    question: str
    answer: str


class ProductCategory(BaseModel):
    name: str
    description: str | None = None
    item_count: int | None = None


class FooterLink(BaseModel):
    text: str
    url: str


class FooterContent(BaseModel):
    copyright_text: str | None = None
    important_links: list[FooterLink] | None = None
    additional_info: str | None = None


class StructuredContent(BaseModel):
    business_hours: list[BusinessHoursEntry] | None = None
    services: list[Service] | None = None
    testimonials: list[Testimonial] | None = None
    faq: list[FAQItem] | None = None
    product_categories: list[ProductCategory] | None = None
    footer_content: FooterContent | None = None


class PageContent(BaseModel):
    main_content: str = ""
    footer_text: str = ""
    sidebar_content: str | None = None


class ExtractedBusinessInfo(BaseModel):
    """Merged business profile. ``None`` means no accepted source found it."""

    # Metadata
    site_title: str | None = None
    site_description: str | None = None
    favicon: str | None = None

    # Copy
    tagline: str | None = None
    business_description: str | None = None
    key_features: list[str] | None = None
    hero_section: HeroSection | None = None

    # Branding
    brand_colors: list[str] | None = None
    fonts: list[str] | None = None
    typography: Typography | None = None
    design_tokens: DesignTokens | None = None
    visual_style: VisualStyle | None = None
    logo_url: str | None = None

    # Contact
    emails: list[str] | None = None
    phones: list[str] | None = None
    addresses: list[str] | None = None
    hours: dict[str, DayHours] | None = None
    coordinates: Coordinates | None = None
    social_links: list[SocialLink] | None = None

    # Media
    galleries: list[Gallery] | None = None
    hero_images: list[ExtractedImage] | None = None
    images: list[ExtractedImage] | None = None

    structured_content: StructuredContent | None = None
    page_content: PageContent | None = None
