"""System prompts and user prompt templates for each extraction phase."""

from typing import NamedTuple

from site_extraction.schemas.extraction import PhaseName
from site_extraction.services.html_preprocessor import Mode

_JSON_ONLY = "Return ONLY valid JSON, no markdown fences, no explanation."

_CONFIDENCE_FIELD = (
    '"confidence" (number between 0 and 1: how sure you are that the data above '
    "is present on the page and correctly extracted; use a low value when guessing)"
)

_VISUAL_SYSTEM_PROMPT = (
    "You are a brand identity analyst. You read the markup and styles of a business "
    "website and describe its visual identity as a designer would. "
    "Only report colors and fonts that are actually used by the site. " + _JSON_ONLY
)

_VISUAL_PROMPT_TEMPLATE = (
    "Analyze the visual brand identity of the website {page_url}. "
    "Return a JSON object with these fields: "
    '"brand_colors" (list of 2 to 6 hex colors ordered by importance, primary first, '
    "excluding plain white, black and neutral greys unless they dominate the design), "
    '"logo_url" (absolute URL of the main logo image or null), '
    '"fonts" (list of font family names in use), '
    '"typography" (object with "heading", "body" and "accent", each an object with '
    '"font_family", "font_weight", "font_size", "text_color", "line_height", or null), '
    '"design_tokens" (object with "spacing" as an object with "values" and "unit", '
    '"border_radius" as a list and "shadows" as a list, or null), '
    '"visual_style" (object with "theme" one of modern, classic, minimal, bold, elegant '
    'and "mood" as a short phrase, or null), '
    f"{_CONFIDENCE_FIELD}.{{screenshot_note}}\n\n"
    "Website markup:\n"
)

_CONTACT_SYSTEM_PROMPT = (
    "You extract contact details from business websites. "
    "Never invent an email, phone number or address that does not appear in the text. "
    + _JSON_ONLY
)

_CONTACT_PROMPT_TEMPLATE = (
    "Extract the contact information of the business behind {page_url}. "
    "Return a JSON object with these fields: "
    '"emails" (list of email addresses of the business), '
    '"phones" (list of phone numbers as written on the site), '
    '"addresses" (list of full postal addresses, one string each), '
    '"hours" (object keyed by lowercase weekday, each value an object with "open", '
    '"close" in 24h HH:MM and "closed" boolean, or null), '
    '"social_links" (list of objects with "platform" and "url"), '
    '"coordinates" (object with "lat" and "lng" numbers or null), '
    f"{_CONFIDENCE_FIELD}.\n\n"
    "Page text:\n"
)

_CONTENT_SYSTEM_PROMPT = (
    "You are a copywriter summarizing a business website for a redesign. "
    "Keep the business's own wording where possible. " + _JSON_ONLY
)

_CONTENT_PROMPT_TEMPLATE = (
    "Extract the main content of the website {page_url}. "
    "Return a JSON object with these fields: "
    '"site_title" (the business or site name), '
    '"site_description" (meta description or a one-sentence summary), '
    '"favicon" (absolute favicon URL or null), '
    '"business_description" (2 to 4 sentences on what the business does), '
    '"tagline" (short slogan or null), '
    '"key_features" (list of up to 8 short selling points), '
    '"hero_section" (object with "headline", "subheadline", "cta_text", "cta_link"), '
    '"main_content" (the main body copy, condensed), '
    '"footer_text" (footer copy or null), '
    f"{_CONFIDENCE_FIELD}.\n\n"
    "Page text:\n"
)

_SOCIAL_PROOF_SYSTEM_PROMPT = (
    "You extract structured business data such as services, testimonials and FAQs "
    "from website text. Only include items that are present on the page. " + _JSON_ONLY
)

_SOCIAL_PROOF_PROMPT_TEMPLATE = (
    "Extract structured content from the website {page_url}. "
    'Return a JSON object with a "structured_content" object containing: '
    '"business_hours" (list of objects with "day", "hours", "closed"), '
    '"services" (list of objects with "name", "description", "price", "duration"), '
    '"testimonials" (list of objects with "name", "role", "content", "rating"), '
    '"faq" (list of objects with "question" and "answer"), '
    '"product_categories" (list of objects with "name", "description", "item_count"), '
    '"footer_content" (object with "copyright_text", "important_links" as a list of '
    'objects with "text" and "url", and "additional_info"). '
    "Use empty lists for sections that are not present. "
    f"Also return {_CONFIDENCE_FIELD}.\n\n"
    "Page text:\n"
)

_IMAGE_SYSTEM_PROMPT = (
    "You catalogue the images of a website from its markup, including CSS background "
    "images, lazy-loading data attributes and picture sources. " + _JSON_ONLY
)

_IMAGE_PROMPT_TEMPLATE = (
    "List the meaningful images of the website {page_url}, resolving relative URLs "
    "against it. Skip tracking pixels, icons and spacers. "
    'Return a JSON object with "images": a list of objects with '
    '"url" (absolute URL), '
    '"type" (one of hero, gallery, product, feature, team, logo, other), '
    '"context" (one of background-image, css-variable, img-tag, picture-element, '
    "data-attribute), "
    '"selector" (a short CSS selector locating the element or null), '
    '"alt" (alt text or null), '
    '"dimensions" (object with "width" and "height" when known, or null), '
    '"confidence" (number between 0 and 1 for the type classification). '
    f"Also return {_CONFIDENCE_FIELD}.\n\n"
    "Website markup:\n"
)

_SOCIAL_MEDIA_SYSTEM_PROMPT = (
    "You find the official social media profiles of a business on its website. "
    "Ignore share buttons and links to other businesses. " + _JSON_ONLY
)

_SOCIAL_MEDIA_PROMPT_TEMPLATE = (
    "Find the social media profiles of the business behind {page_url}. "
    'Return a JSON object with "social_links": a list of objects with '
    '"platform" (lowercase, e.g. facebook, instagram, twitter, linkedin, tiktok, youtube), '
    '"url" (absolute profile URL), '
    '"confidence" (number between 0 and 1), '
    '"location" (one of footer, header, content, sidebar, contact), '
    '"extraction_method" (one of direct_link, icon_link, schema_markup, inferred), '
    '"username" (handle or null), '
    '"notes" (or null); '
    'and "extraction_metadata": an object with "total_links_found", '
    '"primary_social_section", "has_structured_data" and "ambiguous_links". '
    f"Also return {_CONFIDENCE_FIELD}.\n\n"
    "Page text:\n"
)

_SCREENSHOT_NOTE = (
    " A screenshot of the rendered homepage is attached; prefer the colors you see in it."
)


class PhasePrompt(NamedTuple):
    system: str
    template: str
    mode: Mode


PHASE_PROMPTS: dict[PhaseName, PhasePrompt] = {
    PhaseName.phase1: PhasePrompt(_VISUAL_SYSTEM_PROMPT, _VISUAL_PROMPT_TEMPLATE, "visual"),
    PhaseName.phase2a: PhasePrompt(_CONTACT_SYSTEM_PROMPT, _CONTACT_PROMPT_TEMPLATE, "text"),
    PhaseName.phase2b: PhasePrompt(_CONTENT_SYSTEM_PROMPT, _CONTENT_PROMPT_TEMPLATE, "text"),
    PhaseName.phase2c: PhasePrompt(
        _SOCIAL_PROOF_SYSTEM_PROMPT, _SOCIAL_PROOF_PROMPT_TEMPLATE, "text"
    ),
    PhaseName.phase2d: PhasePrompt(_IMAGE_SYSTEM_PROMPT, _IMAGE_PROMPT_TEMPLATE, "image"),
    PhaseName.phase2e: PhasePrompt(
        _SOCIAL_MEDIA_SYSTEM_PROMPT, _SOCIAL_MEDIA_PROMPT_TEMPLATE, "text"
    ),
}


def build_user_prompt(
    phase: PhaseName,
    preprocessed_html: str,
    page_url: str,
    *,
    has_screenshot: bool = False,
) -> str:
    template = PHASE_PROMPTS[phase].template
    # Page content is appended, never formatted: it may contain braces
    header = template.format(
        page_url=page_url,
        screenshot_note=_SCREENSHOT_NOTE if has_screenshot else "",
    )
    return header + preprocessed_html
