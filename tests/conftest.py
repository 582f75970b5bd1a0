import httpx
import pytest
from httpx import ASGITransport

from site_extraction.schemas.pages import DiscoveredPage, PageType

ACME_HOME = """
<html>
<head>
  <title>Acme Flowers</title>
  <meta name="description" content="Fresh flowers delivered daily across Springfield.">
  <meta name="theme-color" content="#e91e63">
  <link rel="icon" href="/favicon.ico">
  <style>
    :root { --primary-color: #e91e63; --accent: #4caf50; }
    body { color: #333333; font-family: 'Lora', serif; }
  </style>
</head>
<body>
  <header><img class="logo" src="/img/logo.png" alt="Acme Flowers logo"></header>
  <section class="hero" style="background-image: url('/img/hero.jpg')">
    <h1>Fresh Flowers, Delivered</h1>
    <h2>Hand-tied bouquets for every occasion</h2>
    <a class="btn" href="/shop">Shop now</a>
  </section>
  <main>
    <p>Acme Flowers is a family-run florist in Springfield. We grow most of our stems
    ourselves and deliver hand-tied bouquets, wedding flowers and sympathy arrangements.</p>
    <div class="features">
      <ul><li>Same-day delivery</li><li>Locally grown stems</li></ul>
    </div>
  </main>
  <footer>
    <p>Call us at (555) 123-4567 or email <a href="mailto:hello@acme.test">hello@acme.test</a></p>
    <address>123 Main Street, Springfield</address>
    <a href="https://www.instagram.com/acmeflowers">Instagram</a>
    <p>&copy; 2024 Acme Flowers</p>
  </footer>
</body>
</html>
"""

ACME_ABOUT = """
<html><body>
  <nav><a href="/">Home</a></nav>
  <main>
    <h1>About us</h1>
    <p>Acme Flowers started in 1998 as a market stall. Today our team of six florists
    designs arrangements for weddings, events and everyday moments, always with
    seasonal flowers from our own fields.</p>
  </main>
</body></html>
"""


@pytest.fixture
def acme_pages() -> list[DiscoveredPage]:
    return [
        DiscoveredPage(url="https://acme.test/", page_type=PageType.homepage, html=ACME_HOME),
        DiscoveredPage(url="https://acme.test/about", page_type=PageType.about, html=ACME_ABOUT),
    ]


@pytest.fixture
def mock_env(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENROUTER_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("LLM_EXTRACTION_ENABLED", "false")
    monkeypatch.setenv("DEBUG_CAPTURE_ENABLED", "false")
    monkeypatch.setenv("DEBUG_CAPTURE_DIR", str(tmp_path / "captures"))


@pytest.fixture
async def client(mock_env):
    from site_extraction.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
