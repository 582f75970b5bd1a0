from typing import Annotated

from fastapi import Depends, Request

from site_extraction.jobs import JobStore
from site_extraction.phase_config import ExtractionConfig
from site_extraction.services.analyzer import ContentAnalyzerService


def get_analyzer_service(request: Request) -> ContentAnalyzerService:
    return request.app.state.analyzer_service


def get_extraction_config(request: Request) -> ExtractionConfig:
    return request.app.state.extraction_config


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


AnalyzerDep = Annotated[ContentAnalyzerService, Depends(get_analyzer_service)]
ExtractionConfigDep = Annotated[ExtractionConfig, Depends(get_extraction_config)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
