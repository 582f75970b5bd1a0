import json
import os
import time

import pytest

from site_extraction.schemas.pages import DiscoveredPage, PageType
from site_extraction.services.debug_capture import MANIFEST_NAME, FileDebugCapture, session_key

BASE_URL = "https://acme.test"


def _pages(body: str = "<p>hi</p>") -> list[DiscoveredPage]:
    return [
        DiscoveredPage(url="https://acme.test/", page_type=PageType.homepage, html=body),
        DiscoveredPage(url="https://acme.test/about", page_type=PageType.about, html="<p>about</p>"),
    ]


def test_session_key_is_content_addressed():
    assert session_key(_pages(), BASE_URL) == session_key(_pages(), BASE_URL)
    assert session_key(_pages(), BASE_URL) != session_key(_pages("<p>changed</p>"), BASE_URL)


def test_write_session(tmp_path):
    capture = FileDebugCapture(tmp_path)

    session = capture.write_session(_pages(), BASE_URL)

    assert session.name.startswith("acme-test-")
    assert (session / "00-homepage.html").read_text(encoding="utf-8") == "<p>hi</p>"
    manifest = json.loads((session / MANIFEST_NAME).read_text(encoding="utf-8"))
    assert manifest["base_url"] == BASE_URL
    assert [p["file"] for p in manifest["pages"]] == ["00-homepage.html", "01-about.html"]
    assert not any(p.name.endswith(".tmp") for p in tmp_path.iterdir())


def test_write_session_is_idempotent(tmp_path):
    capture = FileDebugCapture(tmp_path)

    first = capture.write_session(_pages(), BASE_URL)
    second = capture.write_session(_pages(), BASE_URL)

    assert first == second
    assert len(list(tmp_path.iterdir())) == 1


@pytest.mark.asyncio
async def test_observe_writes_in_thread(tmp_path):
    capture = FileDebugCapture(tmp_path)

    await capture.observe(_pages(), BASE_URL)

    assert len(list(tmp_path.iterdir())) == 1


def _age(path, seconds: float) -> None:
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


def test_cleanup_removes_expired_sessions(tmp_path):
    capture = FileDebugCapture(tmp_path, max_age_hours=1)
    old = capture.write_session(_pages("<p>old</p>"), BASE_URL)
    fresh = capture.write_session(_pages("<p>fresh</p>"), BASE_URL)
    _age(old, 2 * 3600)

    assert capture.cleanup() == 1
    assert not old.exists()
    assert fresh.exists()


def test_cleanup_keeps_newest_within_count(tmp_path):
    capture = FileDebugCapture(tmp_path, max_sessions=2)
    sessions = [capture.write_session(_pages(f"<p>{i}</p>"), BASE_URL) for i in range(4)]
    for i, session in enumerate(sessions):
        _age(session, (4 - i) * 60)

    assert capture.cleanup() == 2
    assert [s.exists() for s in sessions] == [False, False, True, True]


def test_cleanup_enforces_total_size(tmp_path):
    capture = FileDebugCapture(tmp_path, max_total_bytes=1800)
    older = capture.write_session(_pages("x" * 1000), BASE_URL)
    newer = capture.write_session(_pages("y" * 1000), BASE_URL)
    _age(older, 120)
    _age(newer, 60)

    assert capture.cleanup() == 1
    assert newer.exists()
    assert not older.exists()


def test_cleanup_missing_root(tmp_path):
    assert FileDebugCapture(tmp_path / "missing").cleanup() == 0
