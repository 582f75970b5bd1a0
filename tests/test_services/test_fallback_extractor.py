"""Tests for the DOM heuristic extractor."""

import json

import pytest

from site_extraction.services.fallback_extractor import FallbackExtractor

BASE_URL = "https://acme.test"


@pytest.fixture
def extractor():
    return FallbackExtractor()


def _json_ld(data) -> str:
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def test_extract_acme_homepage(extractor, acme_pages):
    info = extractor.extract_business_info(acme_pages[0].html, BASE_URL)

    assert info.site_title == "Acme Flowers"
    assert info.site_description == "Fresh flowers delivered daily across Springfield."
    assert info.business_description == info.site_description
    assert info.favicon == "https://acme.test/favicon.ico"
    assert info.emails == ["hello@acme.test"]
    assert info.phones == ["(555) 123-4567"]
    assert info.addresses == ["123 Main Street, Springfield"]
    assert info.brand_colors == ["#e91e63", "#4caf50"]
    assert info.fonts == ["Lora"]
    assert info.logo_url == "https://acme.test/img/logo.png"
    assert info.key_features == ["Same-day delivery", "Locally grown stems"]

    assert info.hero_section.headline == "Fresh Flowers, Delivered"
    assert info.hero_section.subheadline == "Hand-tied bouquets for every occasion"
    assert info.hero_section.cta_text == "Shop now"
    assert info.hero_section.cta_link == "https://acme.test/shop"
    assert info.hero_section.background_image == "https://acme.test/img/hero.jpg"

    assert [link.platform for link in info.social_links] == ["instagram"]
    assert info.social_links[0].username == "acmeflowers"

    image_types = {img.url: img.type for img in info.images}
    assert image_types["https://acme.test/img/logo.png"] == "logo"
    assert image_types["https://acme.test/img/hero.jpg"] == "hero"
    assert info.page_content.main_content.startswith("Acme Flowers is a family-run florist")


def test_extract_is_deterministic(extractor, acme_pages):
    first = extractor.extract_business_info(acme_pages[0].html, BASE_URL)
    second = extractor.extract_business_info(acme_pages[0].html, BASE_URL)

    assert first == second


def test_empty_html(extractor):
    info = extractor.extract_business_info("", BASE_URL)

    assert info.emails is None
    assert info.brand_colors is None
    assert info.structured_content is None
    assert info.page_content is None


def test_emails_filtered_and_ranked(extractor):
    html = """
    <body>
      <a href="mailto:sales@acme.test?subject=Hi">Sales</a>
      <p>noreply@acme.test, user@example.com, icon@2x.png, errors@sentry.io</p>
      <p>Write to info@acme.test</p>
    </body>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    assert info.emails == ["info@acme.test", "sales@acme.test"]


def test_phones_deduplicated_by_digits(extractor):
    html = """
    <body>
      <a href="tel:+1-555-123-4567">Call</a>
      <p>Phone: +1 555 123 4567 or (555) 987-6543</p>
    </body>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    assert info.phones == ["+1-555-123-4567", "(555) 987-6543"]


def test_json_ld_local_business(extractor):
    html = "<html><head>" + _json_ld({
        "@context": "https://schema.org",
        "@type": "LocalBusiness",
        "name": "Acme Flowers",
        "description": "Florist and plant nursery since 1998.",
        "telephone": "+1 555 010 0199",
        "email": "contact@acme.test",
        "logo": {"@type": "ImageObject", "url": "/brand/logo.svg"},
        "address": {
            "@type": "PostalAddress",
            "streetAddress": "123 Main Street",
            "addressLocality": "Springfield",
            "postalCode": "12345",
        },
        "geo": {"@type": "GeoCoordinates", "latitude": "40.7", "longitude": -74.0},
        "sameAs": ["https://facebook.com/acmeflowers", "https://twitter.com/intent/tweet?x=1"],
        "openingHoursSpecification": [
            {"@type": "OpeningHoursSpecification", "dayOfWeek": "https://schema.org/Monday",
             "opens": "09:00", "closes": "17:00"},
            {"@type": "OpeningHoursSpecification", "dayOfWeek": ["Saturday"]},
        ],
    }) + "</head><body></body></html>"

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.site_title == "Acme Flowers"
    assert info.business_description == "Florist and plant nursery since 1998."
    assert info.emails == ["contact@acme.test"]
    assert info.phones == ["+1 555 010 0199"]
    assert info.addresses == ["123 Main Street, Springfield, 12345"]
    assert info.coordinates.lat == 40.7
    assert info.coordinates.lng == -74.0
    assert info.logo_url == "https://acme.test/brand/logo.svg"
    assert info.hours["monday"].open == "09:00"
    assert info.hours["saturday"].closed is True
    assert [link.platform for link in info.social_links] == ["facebook"]


def test_malformed_json_ld_is_skipped(extractor):
    html = '<script type="application/ld+json">{not json</script><title>Still works</title>'

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.site_title == "Still works"


def test_coordinates_from_meta(extractor):
    html = '<head><meta name="geo.position" content="51.5;-0.12"></head>'

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.coordinates.lat == 51.5
    assert info.coordinates.lng == -0.12


def test_social_links_first_per_platform(extractor):
    html = """
    <footer>
      <a href="https://www.facebook.com/sharer/sharer.php?u=x">Share</a>
      <a href="https://www.facebook.com/acme">Facebook</a>
      <a href="https://facebook.com/acme-other">Other</a>
      <a href="https://x.com/acme">X</a>
      <a href="https://www.linkedin.com/company/acme-co">LinkedIn</a>
    </footer>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    links = {link.platform: link for link in info.social_links}
    assert links["facebook"].url == "https://www.facebook.com/acme"
    assert links["twitter"].username == "acme"
    assert links["linkedin"].username == "acme-co"


def test_logo_skips_placeholders(extractor):
    html = """
    <header>
      <img class="logo" src="/img/placeholder.gif">
      <img class="logo" src="/img/real-logo.png">
    </header>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    assert info.logo_url == "https://acme.test/img/real-logo.png"


def test_fonts_from_google_fonts(extractor):
    html = """
    <head>
      <link href="https://fonts.googleapis.com/css?family=Playfair+Display:700|Open+Sans" rel="stylesheet">
      <style>h1 { font-family: "Montserrat", sans-serif; } p { font-family: var(--body); }</style>
    </head>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    assert info.fonts == ["Playfair Display", "Open Sans", "Montserrat"]


def test_gallery_images(extractor):
    html = """
    <body>
      <div class="gallery">
        <img src="/g/1.jpg" alt="One" width="400" height="300">
        <img data-src="/g/2.jpg" alt="Two">
        <img src="/pixel.gif" width="1" height="1">
      </div>
    </body>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    gallery = info.galleries[0]
    assert [img.url for img in gallery.images] == ["https://acme.test/g/1.jpg", "https://acme.test/g/2.jpg"]
    assert gallery.images[0].width == 400
    assert info.images[1].context == "data-attribute"


def test_bare_h1_does_not_make_everything_hero(extractor):
    html = '<body><h1>Welcome</h1><img src="/a.jpg"></body>'

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.hero_section.headline == "Welcome"
    assert info.hero_images is None
    assert info.images[0].type == "other"


def test_business_hours_from_text(extractor):
    html = """
    <body>
      <div class="hours">
        Monday - Friday: 9am - 6pm
        Saturday: 10am - 4pm
        Sunday: Closed
      </div>
    </body>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    hours = info.structured_content.business_hours
    assert hours[0].day == "Monday-Friday"
    assert hours[0].hours == "9am - 6pm"
    assert hours[1].day == "Saturday"
    assert hours[2].day == "Sunday"
    assert hours[2].closed is True


def test_services_from_cards(extractor):
    html = """
    <section class="services">
      <div class="service-item">
        <h3>Wedding bouquets</h3>
        <span class="price">$120</span>
        <p>Hand-tied bouquets designed with you, 2 hour consultation included.</p>
      </div>
      <div class="service-item">
        <h3>Weekly subscription</h3>
        <span class="price">$35</span>
      </div>
    </section>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    services = info.structured_content.services
    assert [s.name for s in services] == ["Wedding bouquets", "Weekly subscription"]
    assert services[0].price == "$120"
    assert services[0].duration == "2 hour"


def test_services_from_table(extractor):
    html = """
    <table>
      <tr><th>Service</th><th>Price</th></tr>
      <tr><td>Delivery</td><td>$10</td></tr>
      <tr><td>Total</td><td>$10</td></tr>
    </table>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    assert [s.name for s in info.structured_content.services] == ["Delivery"]


def test_testimonials(extractor):
    html = """
    <div class="testimonial">
      <p>The flowers for our wedding were absolutely stunning, thank you!</p>
      <span class="author">- Jane Doe</span>
      <span class="star filled"></span><span class="star filled"></span>
      <span class="star filled"></span><span class="star filled"></span>
      <span class="star"></span>
    </div>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    testimonial = info.structured_content.testimonials[0]
    assert testimonial.content.startswith("The flowers for our wedding")
    assert testimonial.name == "Jane Doe"
    assert testimonial.rating == 4.0


def test_faq_from_json_ld_and_definition_list(extractor):
    html = _json_ld({
        "@type": "FAQPage",
        "mainEntity": [{
            "@type": "Question",
            "name": "Do you deliver on Sundays?",
            "acceptedAnswer": {"@type": "Answer", "text": "<p>Yes, until <b>noon</b>.</p>"},
        }],
    }) + "<dl><dt>Can I pay by card?</dt><dd>All major cards are accepted.</dd></dl>"

    info = extractor.extract_business_info(html, BASE_URL)

    faq = info.structured_content.faq
    assert faq[0].question == "Do you deliver on Sundays?"
    assert faq[0].answer == "Yes, until noon ."
    assert faq[1].question == "Can I pay by card?"


def test_footer_content(extractor):
    html = """
    <footer>
      <p class="copyright">&copy; 2024 Acme Flowers. All rights reserved.</p>
      <a href="/privacy">Privacy</a>
      <a href="mailto:hello@acme.test">Email</a>
    </footer>
    """
    info = extractor.extract_business_info(html, BASE_URL)

    footer = info.structured_content.footer_content
    assert footer.copyright_text.startswith("© 2024 Acme Flowers")
    assert [(link.text, link.url) for link in footer.important_links] == [
        ("Privacy", "https://acme.test/privacy")
    ]


def test_malformed_urls_are_skipped(extractor):
    html = """
    <head>
      <title>Acme Flowers</title>
      <link rel="stylesheet" href="http://[fonts.googleapis.com/css?family=Lora">
    </head>
    <header><img class="logo" src="http://[oops/logo.png"></header>
    <section class="hero" style="background-image: url('http://[oops/hero.jpg')">
      <h1>Fresh Flowers</h1><a class="btn" href="http://[oops/shop">Shop</a>
    </section>
    <img src="/img/ok.jpg" srcset=" , ">
    <img srcset="   ">
    <img src="/img/sized.jpg" width="²" height="10">
    <footer><a href="http://[oops/">Instagram</a><a href="https://instagram.com/acme">IG</a></footer>
    """

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.site_title == "Acme Flowers"
    assert info.logo_url is None
    assert info.fonts is None
    assert info.hero_section.headline == "Fresh Flowers"
    assert info.hero_section.cta_link is None
    assert [link.url for link in info.social_links] == ["https://instagram.com/acme"]
    assert "https://acme.test/img/ok.jpg" in [img.url for img in info.images]


def test_malformed_base_url_does_not_raise(extractor):
    html = '<title>Acme</title><a href="/about">About</a><img src="/a.jpg">'

    info = extractor.extract_business_info(html, "http://[oops/")

    assert info.site_title == "Acme"
    assert info.images is None


def test_non_finite_coordinates_are_ignored(extractor):
    html = _json_ld({"@type": "LocalBusiness", "name": "Acme", "geo": {
        "@type": "GeoCoordinates", "latitude": "NaN", "longitude": "1e999",
    }})

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.coordinates is None


def test_out_of_range_coordinates_fall_through_to_meta(extractor):
    html = (
        _json_ld({"@type": "Place", "latitude": 91, "longitude": 200})
        + '<meta name="ICBM" content="51.5, -0.12">'
    )

    info = extractor.extract_business_info(html, BASE_URL)

    assert info.coordinates.lat == 51.5
    assert info.coordinates.lng == -0.12


def test_lone_surrogates_are_replaced(extractor):
    info = extractor.extract_business_info("<title>Acme \ud800 Flowers</title>", BASE_URL)

    assert info.site_title.encode("utf-8")
    assert "\ud800" not in info.site_title
