from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from site_extraction.schemas.business import ExtractedBusinessInfo
from site_extraction.schemas.extraction import ExtractionMetadata
from site_extraction.schemas.pages import DiscoveredPage, PageType


class AnalyzedWebsite(BaseModel):
    base_url: str
    business_info: ExtractedBusinessInfo
    page_contents: dict[PageType, str] = {}
    recommended_pages: list[str] = []
    content_summary: str = ""


class AnalysisResult(BaseModel):
    website: AnalyzedWebsite
    metadata: ExtractionMetadata


class AnalyzeRequest(BaseModel):
    base_url: str
    pages: list[DiscoveredPage]
    screenshot: str | None = None  # base64 PNG or data URL, used by Phase 1


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    created_at: datetime
    finished_at: datetime | None = None
    base_url: str | None = None
    result: AnalysisResult | None = None
    error: str | None = None
