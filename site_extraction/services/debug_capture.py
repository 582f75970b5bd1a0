"""Best-effort capture of scraped HTML for offline debugging.

Sessions are content-addressed, so re-analysing identical pages reuses the
same directory. Retention is enforced separately by ``cleanup``.
"""

import asyncio
import hashlib
import json
import logging
import re
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

from site_extraction.schemas.pages import DiscoveredPage

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


class DebugObserver(Protocol):
    async def observe(self, pages: list[DiscoveredPage], base_url: str) -> None: ...


def session_key(pages: list[DiscoveredPage], base_url: str) -> str:
    digest = hashlib.sha256(base_url.encode("utf-8"))
    for page in pages:
        digest.update(b"\0" + page.url.encode("utf-8"))
        digest.update(b"\0" + page.html.encode("utf-8"))
    return digest.hexdigest()[:16]


def _site_slug(base_url: str) -> str:
    host = urlparse(base_url).netloc.lower() or base_url.lower()
    return _SLUG_RE.sub("-", host).strip("-")[:60] or "site"


def _dir_size(path: Path) -> int:
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())


class FileDebugCapture:
    def __init__(
        self,
        root: str | Path,
        *,
        max_age_hours: float = 24.0,
        max_total_bytes: int = 200 * 1024 * 1024,
        max_sessions: int = 50,
    ):
        self._root = Path(root)
        self._max_age_s = max_age_hours * 3600
        self._max_total_bytes = max_total_bytes
        self._max_sessions = max_sessions

    async def observe(self, pages: list[DiscoveredPage], base_url: str) -> None:
        session_dir = await asyncio.to_thread(self.write_session, pages, base_url)
        logger.debug("Captured %d pages for %s in %s", len(pages), base_url, session_dir)

    def write_session(self, pages: list[DiscoveredPage], base_url: str) -> Path:
        session_dir = self._root / f"{_site_slug(base_url)}-{session_key(pages, base_url)}"
        if (session_dir / MANIFEST_NAME).exists():
            return session_dir

        # Written under a temporary name so a half-written session is never picked up
        staging = self._root / f".{session_dir.name}.tmp"
        staging.mkdir(parents=True, exist_ok=True)
        entries = []
        for i, page in enumerate(pages):
            filename = f"{i:02d}-{page.page_type.value}.html"
            (staging / filename).write_text(page.html, encoding="utf-8")
            entries.append({
                "url": page.url,
                "page_type": page.page_type.value,
                "file": filename,
                "bytes": len(page.html.encode("utf-8")),
            })

        manifest = {
            "base_url": base_url,
            "captured_at": datetime.now(timezone.utc).isoformat(),
            "pages": entries,
        }
        (staging / MANIFEST_NAME).write_text(json.dumps(manifest, indent=2), encoding="utf-8")

        if session_dir.exists():
            shutil.rmtree(session_dir)
        staging.rename(session_dir)
        return session_dir

    def cleanup(self, now: float | None = None) -> int:
        """Apply max age, then session count and total size limits (newest kept).

        Returns the number of sessions removed.
        """
        if not self._root.is_dir():
            return 0
        now = time.time() if now is None else now

        sessions = sorted(
            (p for p in self._root.iterdir() if p.is_dir() and not p.name.startswith(".")),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )

        removed = 0
        kept_count = 0
        kept_bytes = 0
        for session in sessions:
            size = _dir_size(session)
            expired = now - session.stat().st_mtime > self._max_age_s
            over_count = kept_count + 1 > self._max_sessions
            over_size = kept_bytes + size > self._max_total_bytes
            if expired or over_count or over_size:
                shutil.rmtree(session, ignore_errors=True)
                removed += 1
                continue
            kept_count += 1
            kept_bytes += size

        if removed:
            logger.info("Debug capture cleanup removed %d sessions from %s", removed, self._root)
        return removed

    async def run_cleanup_loop(self, interval_s: float) -> None:
        while True:
            try:
                await asyncio.to_thread(self.cleanup)
            except OSError:
                logger.exception("Debug capture cleanup failed")
            await asyncio.sleep(interval_s)
