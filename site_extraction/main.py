import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from site_extraction.config import Settings, build_extraction_config
from site_extraction.exceptions.custom import NoHomepageError
from site_extraction.exceptions.handlers import no_homepage_error_handler
from site_extraction.jobs import JobStore
from site_extraction.routers.analysis import router as analysis_router
from site_extraction.services.analyzer import ContentAnalyzerService
from site_extraction.services.debug_capture import FileDebugCapture
from site_extraction.services.inference import build_inference_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=30.0) as client:
        inference = build_inference_client(
            settings.inference_provider,
            settings.inference_api_key,
            client,
            settings.openrouter_base_url,
        )
        config = build_extraction_config(settings)

        capture: FileDebugCapture | None = None
        cleanup_task: asyncio.Task | None = None
        if settings.debug_capture_enabled:
            capture = FileDebugCapture(
                settings.debug_capture_dir,
                max_age_hours=settings.debug_capture_max_age_hours,
                max_total_bytes=int(settings.debug_capture_max_total_mb * 1024 * 1024),
                max_sessions=settings.debug_capture_max_sessions,
            )
            cleanup_task = asyncio.create_task(
                capture.run_cleanup_loop(settings.debug_capture_cleanup_interval_s)
            )

        app.state.analyzer_service = ContentAnalyzerService(inference, observer=capture)
        app.state.extraction_config = config
        app.state.job_store = JobStore()

        try:
            yield
        finally:
            if cleanup_task is not None:
                cleanup_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await cleanup_task


app = FastAPI(title="Site Extraction", lifespan=lifespan)

app.add_exception_handler(NoHomepageError, no_homepage_error_handler)

app.include_router(analysis_router)
