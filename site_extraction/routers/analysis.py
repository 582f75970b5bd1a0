import asyncio
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from site_extraction.dependencies import AnalyzerDep, ExtractionConfigDep, JobStoreDep
from site_extraction.exceptions.custom import NoHomepageError
from site_extraction.jobs import JobStore
from site_extraction.phase_config import ExtractionConfig
from site_extraction.schemas.pages import PageType
from site_extraction.schemas.responses import (
    AnalysisResult,
    AnalyzeRequest,
    JobStatusResponse,
    JobSubmittedResponse,
)
from site_extraction.services.analyzer import ContentAnalyzerService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_analysis(
    job_id: str,
    service: ContentAnalyzerService,
    store: JobStore,
    request: AnalyzeRequest,
    config: ExtractionConfig,
) -> None:
    store.mark_running(job_id)
    try:
        result = await service.analyze(
            request.pages, request.base_url, config, screenshot=request.screenshot
        )
        store.finish(job_id, result=result)
    except Exception as exc:
        logger.exception("Analysis job %s failed", job_id)
        store.finish(job_id, error=str(exc))


@router.post("/analyze", response_model=JobSubmittedResponse, status_code=202)
async def submit_analysis(
    request: AnalyzeRequest,
    service: AnalyzerDep,
    config: ExtractionConfigDep,
    store: JobStoreDep,
) -> JobSubmittedResponse:
    # Same precondition as the analyzer, checked upfront so the caller gets a 422 now
    if not any(p.page_type is PageType.homepage for p in request.pages):
        raise NoHomepageError(request.base_url)

    existing = store.active_job_for(request.base_url)
    if existing:
        return JSONResponse(content={
            "job_id": existing.job_id,
            "status": "already_running",
            "message": "An analysis for this site is already in progress",
        })

    job = store.create_job(base_url=request.base_url)
    asyncio.create_task(_run_analysis(job.job_id, service, store, request, config))
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="Analysis job submitted",
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(**job.model_dump())


@router.post("/analyze/sync", response_model=AnalysisResult)
async def analyze_sync(
    request: AnalyzeRequest,
    service: AnalyzerDep,
    config: ExtractionConfigDep,
) -> AnalysisResult:
    return await service.analyze(
        request.pages, request.base_url, config, screenshot=request.screenshot
    )
