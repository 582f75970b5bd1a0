import asyncio
import logging
import time
from collections.abc import Callable

from site_extraction.exceptions.custom import NoHomepageError
from site_extraction.mappers.field_merger import PHASE_FIELDS, FieldMerger, Layer
from site_extraction.mappers.gates import has_minimum_data
from site_extraction.mappers.page_planner import collect_page_contents, recommend_pages
from site_extraction.mappers.phase_mapper import map_phase
from site_extraction.mappers.summary_builder import build_content_summary
from site_extraction.phase_config import ExtractionConfig
from site_extraction.schemas.business import ExtractedBusinessInfo
from site_extraction.schemas.extraction import ExtractionMetadata, PhaseName, PhaseResult
from site_extraction.schemas.pages import DiscoveredPage, PageType
from site_extraction.schemas.responses import AnalysisResult, AnalyzedWebsite
from site_extraction.services.debug_capture import DebugObserver
from site_extraction.services.fallback_extractor import FallbackExtractor
from site_extraction.services.html_preprocessor import reduce, valid_utf8
from site_extraction.services.inference import InferenceClient
from site_extraction.services.phase_extractor import PhaseExtractor, build_phase_extractors
from site_extraction.services.prompts import PHASE_PROMPTS

logger = logging.getLogger(__name__)

# Strong references to fire-and-forget tasks until they finish
_background_tasks: set[asyncio.Task] = set()


class ContentAnalyzerService:
    """Turns a crawled page set into one merged, provenance-tracked business profile.

    Runs the brand phase and the five text phases concurrently over the
    homepage, then decides per phase whether the inference output is kept,
    supplemented by the DOM heuristics, or replaced by them. Only a missing
    homepage is fatal; every other failure ends up in the metadata.
    """

    def __init__(
        self,
        client: InferenceClient | None = None,
        *,
        fallback: FallbackExtractor | None = None,
        observer: DebugObserver | None = None,
        extractors: dict[PhaseName, PhaseExtractor] | None = None,
    ):
        self._client = client
        self._fallback = fallback or FallbackExtractor()
        self._observer = observer
        self._extractors = extractors or build_phase_extractors(client)

    async def analyze(
        self,
        pages: list[DiscoveredPage],
        base_url: str,
        config: ExtractionConfig,
        *,
        screenshot: str | None = None,
    ) -> AnalysisResult:
        start = time.monotonic()

        homepage = next((p for p in pages if p.page_type is PageType.homepage), None)
        if homepage is None:
            raise NoHomepageError(base_url)
        base_url = valid_utf8(base_url)

        metadata = ExtractionMetadata()
        llm_mode = config.llm_enabled and self._client is not None
        metadata.mode = "llm" if llm_mode else "fallback_only"
        logger.info("Analyzing %s (%d pages, mode=%s)", base_url, len(pages), metadata.mode)

        fallback_cache: dict[str, ExtractedBusinessInfo] = {}

        def fallback_info() -> ExtractedBusinessInfo:
            # Computed at most once per run, and only when some phase needs it
            if "homepage" not in fallback_cache:
                try:
                    info = self._fallback.extract_business_info(homepage.html, base_url)
                except Exception as exc:
                    logger.exception("Fallback extraction failed for %s", base_url)
                    metadata.errors.append(f"fallback: unexpected error: {exc!r}")
                    info = ExtractedBusinessInfo()
                fallback_cache["homepage"] = info
            return fallback_cache["homepage"]

        merger = FieldMerger()
        if llm_mode:
            results = await self._run_phases(homepage, config, screenshot)
            for phase, result in results.items():
                layers = self._layers_for(phase, result, base_url, config, metadata, fallback_info)
                merger.offer(PHASE_FIELDS[phase], layers)
            metadata.estimated_cost_usd = self._estimate_cost(results, config)
            metadata.fallback_phases = [p.value for p, r in results.items() if r.used_fallback]
        else:
            info = fallback_info()
            for phase in PhaseName:
                merger.offer(PHASE_FIELDS[phase], [(info, "fallback")])
            metadata.fallback_phases = [p.value for p in PhaseName]

        business_info = merger.build()
        metadata.field_sources = merger.sources()
        metadata.used_fallback = bool(fallback_cache)
        metadata.success = has_minimum_data(business_info)
        if not metadata.success:
            metadata.warnings.append(
                "Insufficient data: fewer than two of contact, branding and content found"
            )

        page_contents = collect_page_contents(pages)
        website = AnalyzedWebsite(
            base_url=base_url,
            business_info=business_info,
            page_contents=page_contents,
            recommended_pages=recommend_pages(pages),
            content_summary=build_content_summary(business_info, page_contents),
        )

        metadata.duration_ms = int((time.monotonic() - start) * 1000)
        self._check_budgets(metadata, config)

        if config.log_metrics:
            logger.info(
                "Analysis of %s done in %dms: success=%s fallback=%s cost=$%.4f warnings=%d",
                base_url, metadata.duration_ms, metadata.success, metadata.used_fallback,
                metadata.estimated_cost_usd, len(metadata.warnings),
            )

        self._schedule_observer(pages, base_url)
        return AnalysisResult(website=website, metadata=metadata)

    async def _run_phases(
        self,
        homepage: DiscoveredPage,
        config: ExtractionConfig,
        screenshot: str | None,
    ) -> dict[PhaseName, PhaseResult]:
        inputs: dict[str, str] = {}
        phases = list(self._extractors)
        outcomes = await asyncio.gather(
            *(self._run_phase(phase, homepage, config, screenshot, inputs) for phase in phases),
            return_exceptions=True,
        )

        results: dict[PhaseName, PhaseResult] = {}
        for phase, outcome in zip(phases, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Phase %s task failed: %s", phase, outcome)
                outcome = PhaseResult(phase=phase, errors=[f"unexpected error: {outcome!r}"])
            results[phase] = outcome
        return results

    async def _run_phase(
        self,
        phase: PhaseName,
        homepage: DiscoveredPage,
        config: ExtractionConfig,
        screenshot: str | None,
        inputs: dict[str, str],
    ) -> PhaseResult:
        # Phases sharing a mode share one reduced input
        mode = PHASE_PROMPTS[phase].mode
        if mode not in inputs:
            try:
                inputs[mode] = reduce(homepage.html, mode, base_url=homepage.url)
            except Exception as exc:
                logger.exception("Preprocessing (%s) failed for phase %s", mode, phase)
                return PhaseResult(phase=phase, errors=[f"preprocessing failed: {exc!r}"])
        return await self._extractors[phase].extract(
            inputs[mode], homepage.url, config, screenshot=screenshot
        )

    def _layers_for(
        self,
        phase: PhaseName,
        result: PhaseResult,
        base_url: str,
        config: ExtractionConfig,
        metadata: ExtractionMetadata,
        fallback_info: Callable[[], ExtractedBusinessInfo],
    ) -> list[Layer]:
        metadata.phase_confidences[phase.value] = result.confidence
        metadata.errors.extend(f"{phase.value}: {error}" for error in result.errors)

        if result.succeeded:
            try:
                mapped = map_phase(phase, result.data, base_url)
            except Exception as exc:
                logger.exception("Mapping %s output failed", phase)
                result.succeeded = False
                result.errors.append(f"unusable response: {exc!r}")
                metadata.errors.append(f"{phase.value}: unusable response: {exc!r}")
            else:
                metadata.mark_phase_complete(phase)
                layers: list[Layer] = [(mapped, phase.value)]
                if result.confidence < config.thresholds.prefer_llm and config.enable_fallback:
                    result.used_fallback = True
                    layers.append((fallback_info(), "fallback"))
                return layers

        if not config.enable_fallback:
            metadata.warnings.append(f"{phase.value} rejected and fallback is disabled")
            return []

        metadata.warnings.append(
            f"{phase.value} rejected (confidence {result.confidence:.2f}), using fallback"
        )
        logger.warning("Phase %s rejected, substituting fallback data", phase)
        result.used_fallback = True
        return [(fallback_info(), "fallback")]

    @staticmethod
    def _estimate_cost(results: dict[PhaseName, PhaseResult], config: ExtractionConfig) -> float:
        total = sum(
            config.estimate_cost(
                config.model_for(phase), result.prompt_tokens, result.completion_tokens
            )
            for phase, result in results.items()
        )
        return round(total, 6)

    @staticmethod
    def _check_budgets(metadata: ExtractionMetadata, config: ExtractionConfig) -> None:
        budgets = config.budgets
        cost = metadata.estimated_cost_usd
        if cost > budgets.max_cost_usd:
            metadata.warnings.append(
                f"Estimated cost ${cost:.4f} exceeds ceiling ${budgets.max_cost_usd:.4f}"
            )
        elif cost > budgets.target_cost_usd:
            metadata.warnings.append(
                f"Estimated cost ${cost:.4f} above target ${budgets.target_cost_usd:.4f}"
            )

        duration = metadata.duration_ms
        if duration > budgets.max_duration_ms:
            metadata.warnings.append(
                f"Duration {duration}ms exceeds ceiling {budgets.max_duration_ms}ms"
            )
        elif duration > budgets.target_duration_ms:
            metadata.warnings.append(
                f"Duration {duration}ms above target {budgets.target_duration_ms}ms"
            )

    def _schedule_observer(self, pages: list[DiscoveredPage], base_url: str) -> None:
        if self._observer is None:
            return
        task = asyncio.create_task(self._observe(pages, base_url))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    async def _observe(self, pages: list[DiscoveredPage], base_url: str) -> None:
        try:
            await self._observer.observe(pages, base_url)
        except Exception:
            logger.exception("Debug capture failed for %s", base_url)


async def analyze_scraped_website(
    pages: list[DiscoveredPage],
    base_url: str,
    config: ExtractionConfig,
    *,
    client: InferenceClient | None = None,
    screenshot: str | None = None,
    observer: DebugObserver | None = None,
) -> AnalysisResult:
    """One-shot convenience wrapper around ``ContentAnalyzerService.analyze``."""
    service = ContentAnalyzerService(client, observer=observer)
    return await service.analyze(pages, base_url, config, screenshot=screenshot)
