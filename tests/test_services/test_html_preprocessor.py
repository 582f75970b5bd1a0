"""Tests for HTML reduction."""

import pytest

from site_extraction.services.html_preprocessor import (
    MODE_MAX_BYTES,
    clean_page_text,
    normalize_text,
    preview,
    reduce,
    truncate_utf8,
)

PAGE = """
<html>
<head>
  <title>Acme Flowers</title>
  <meta name="description" content="Fresh flowers daily">
  <meta name="theme-color" content="#e91e63">
  <meta name="generator" content="SiteBuilder 3">
  <script>var tracking = "secret";</script>
  <style>.hero { color: #e91e63; }</style>
</head>
<body>
  <!-- main navigation -->
  <nav><a href="/about">About</a></nav>
  <main class="content" data-track="x" onclick="go()">
    <h1>Fresh Flowers</h1>
    <p>We deliver hand-tied bouquets across Springfield every day of the week, rain or shine, always on time.</p>
    <img src="/hero.jpg" data-src="/hero-large.jpg" srcset="/hero-2x.jpg 2x" alt="Bouquet">
  </main>
  <svg><path d="M0 0 L10 10"/></svg>
  <footer>
    <a href="mailto:hello@acme.test">Email us</a>
    <a href="tel:+15551234567">Call</a>
    <a href="https://www.instagram.com/acmeflowers">Instagram</a>
  </footer>
</body>
</html>
"""


def test_reduce_unknown_mode():
    with pytest.raises(ValueError):
        reduce(PAGE, "audio")


@pytest.mark.parametrize("mode", ["visual", "text", "image"])
def test_reduce_empty_input(mode):
    assert reduce("", mode) == ""
    assert reduce("   \n ", mode) == ""


def test_reduce_text_sections():
    text = reduce(PAGE, "text", base_url="https://acme.test")

    assert text.startswith("Title: Acme Flowers")
    assert "Description: Fresh flowers daily" in text
    assert "Email us <mailto:hello@acme.test>" in text
    assert "Call <tel:+15551234567>" in text
    assert "Instagram <https://www.instagram.com/acmeflowers>" in text
    assert "Content:\nFresh Flowers\nWe deliver" in text
    assert "tracking" not in text
    assert "main navigation" not in text


def test_reduce_visual_keeps_styling_and_drops_noise():
    reduced = reduce(PAGE, "visual")

    assert "<style>" in reduced and "#e91e63" in reduced
    assert 'name="theme-color"' in reduced
    assert "generator" not in reduced
    assert "<script" not in reduced
    assert "main navigation" not in reduced
    assert "onclick" not in reduced
    assert "data-track" not in reduced
    assert 'class="content"' in reduced
    assert "M0 0" not in reduced
    assert "srcset" not in reduced


def test_reduce_image_keeps_image_attributes():
    reduced = reduce(PAGE, "image")

    assert 'data-src="/hero-large.jpg"' in reduced
    assert 'srcset="/hero-2x.jpg 2x"' in reduced
    assert "data-track" not in reduced


def test_reduce_truncates_long_text_nodes():
    html = "<html><body><p>" + "word " * 100 + "</p></body></html>"

    visual = reduce(html, "visual")
    image = reduce(html, "image")

    assert "..." in visual
    assert len(visual) < len(html)
    assert len(image) < len(visual)


def test_reduce_shortens_data_uris():
    data_uri = "data:image/png;base64," + "A" * 500
    reduced = reduce(f'<img src="{data_uri}">', "image")

    assert "A" * 100 not in reduced
    assert "data:image/png;base64," in reduced


@pytest.mark.parametrize("mode", ["visual", "text", "image"])
def test_reduce_respects_byte_budget(mode):
    html = "<html><body>" + "".join(
        f'<div class="card-{i}"><p>Ünïcödé paragraph number {i}</p></div>' for i in range(5000)
    ) + "</body></html>"

    reduced = reduce(html, mode)

    assert len(reduced.encode("utf-8")) <= MODE_MAX_BYTES[mode]


def test_truncate_utf8_never_splits_characters():
    text = "é" * 10
    cut = truncate_utf8(text, 5)
    assert cut == "éé"
    assert truncate_utf8("short", 100) == "short"


def test_truncate_utf8_markup_drops_partial_tag_and_entity():
    assert truncate_utf8("<p>hello</p><div class", 16, markup=True) == "<p>hello</p>"
    assert truncate_utf8("<p>fish &amp", 11, markup=True) == "<p>fish"


def test_clean_page_text_prefers_main_content():
    text = clean_page_text(PAGE)

    assert text.startswith("Fresh Flowers")
    assert "About" not in text
    assert "Email us" not in text


def test_clean_page_text_falls_back_to_body():
    html = "<html><body><main>Short</main><div>Other body text</div></body></html>"
    assert clean_page_text(html) == "Short\nOther body text"


def test_preview():
    assert preview("one\ntwo   three") == "one two three"
    long = preview("x" * 600, 500)
    assert len(long) == 500
    assert long.endswith("...")


def test_normalize_text():
    assert normalize_text("  a   b  \n\n\t c ") == "a b\nc"


@pytest.mark.parametrize("mode", ["visual", "text", "image"])
def test_reduce_replaces_lone_surrogates(mode):
    html = "<main><p>hi \ud800 there, we deliver flowers every single day of the week.</p></main>"

    reduced = reduce(html, mode)

    assert len(reduced.encode("utf-8")) <= MODE_MAX_BYTES[mode]
    assert "\ud800" not in reduced


def test_clean_page_text_replaces_lone_surrogates():
    text = clean_page_text("<main><p>hi \ud800 there</p></main>")

    assert text.encode("utf-8")
    assert text.startswith("hi ")


def test_reduce_text_skips_malformed_social_links():
    html = (
        '<footer><a href="https://instagram.com/[oops">Bad</a>'
        '<a href="https://www.facebook.com/acme">Facebook</a></footer>'
    )

    reduced = reduce(html, "text", base_url="http://[oops/")

    assert "Links:" not in reduced
