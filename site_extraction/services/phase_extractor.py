import asyncio
import logging
import time
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from site_extraction.exceptions.custom import InferenceError
from site_extraction.mappers.gates import passes_gate
from site_extraction.phase_config import ExtractionConfig, ModelRole
from site_extraction.schemas.extraction import (
    ContactExtraction,
    ContentExtraction,
    ImageExtraction,
    PhaseName,
    PhaseResult,
    SocialMediaExtraction,
    SocialProofExtraction,
    VisualBrandAnalysis,
)
from site_extraction.services.inference import (
    InferenceClient,
    InferenceRequest,
    InferenceResponse,
)
from site_extraction.services.prompts import PHASE_PROMPTS, build_user_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

PHASE_RESPONSE_MODELS: dict[PhaseName, type[BaseModel]] = {
    PhaseName.phase1: VisualBrandAnalysis,
    PhaseName.phase2a: ContactExtraction,
    PhaseName.phase2b: ContentExtraction,
    PhaseName.phase2c: SocialProofExtraction,
    PhaseName.phase2d: ImageExtraction,
    PhaseName.phase2e: SocialMediaExtraction,
}


class PhaseExtractor(Generic[T]):
    """Runs one extraction phase against the inference gateway.

    Timeouts and retryable gateway errors are retried with linear backoff.
    A response that arrives is final: unparseable or low-confidence output
    comes back as a failed ``PhaseResult``, never as an exception.
    """

    def __init__(
        self,
        phase: PhaseName,
        response_model: type[T],
        client: InferenceClient | None,
    ):
        self.phase = phase
        self._response_model = response_model
        self._client = client

    async def extract(
        self,
        preprocessed_html: str,
        page_url: str,
        config: ExtractionConfig,
        *,
        screenshot: str | None = None,
    ) -> PhaseResult[T]:
        start = time.monotonic()
        try:
            result = await self._extract(preprocessed_html, page_url, config, screenshot)
        except Exception as exc:
            logger.exception("Phase %s crashed for %s", self.phase, page_url)
            result = self._result(errors=[f"unexpected error: {exc!r}"])
        result.duration_ms = int((time.monotonic() - start) * 1000)
        return result

    async def _extract(
        self,
        preprocessed_html: str,
        page_url: str,
        config: ExtractionConfig,
        screenshot: str | None,
    ) -> PhaseResult[T]:
        if self._client is None:
            return self._result(errors=["no inference client configured"])
        if not preprocessed_html:
            return self._result(errors=["empty input after preprocessing"])

        policy = config.policy(self.phase)
        image = screenshot if policy.model_role is ModelRole.vision else None
        user_prompt = build_user_prompt(
            self.phase, preprocessed_html, page_url, has_screenshot=bool(image)
        )
        if config.log_prompts:
            logger.debug("Phase %s prompt: %s", self.phase, user_prompt[:500])

        request = InferenceRequest(
            model=config.model_for(self.phase),
            system_prompt=PHASE_PROMPTS[self.phase].system,
            user_prompt=user_prompt,
            temperature=policy.temperature,
            max_tokens=policy.max_tokens,
            timeout=policy.timeout,
            image=image,
        )

        errors: list[str] = []
        response, attempts = await self._call_with_retry(request, config, errors)
        if response is None:
            return self._result(errors=errors, attempts=attempts)

        try:
            data = self._response_model.model_validate(response.data)
        except ValidationError as exc:
            logger.warning("Phase %s returned an invalid payload: %s", self.phase, exc)
            errors.append(f"invalid response: {exc.error_count()} validation error(s)")
            return self._result(errors=errors, attempts=attempts, response=response)

        threshold = config.threshold_for(self.phase)
        succeeded = passes_gate(self.phase, data, threshold)
        if not succeeded:
            errors.append(
                f"below minimum data or confidence "
                f"(confidence {data.confidence:.2f}, threshold {threshold:.2f})"
            )

        if config.log_metrics:
            logger.info(
                "Phase %s: succeeded=%s confidence=%.2f attempts=%d tokens=%d/%d",
                self.phase, succeeded, data.confidence, attempts,
                response.prompt_tokens, response.completion_tokens,
            )

        return self._result(
            data=data,
            confidence=data.confidence,
            succeeded=succeeded,
            errors=errors,
            attempts=attempts,
            response=response,
        )

    async def _call_with_retry(
        self,
        request: InferenceRequest,
        config: ExtractionConfig,
        errors: list[str],
    ) -> tuple[InferenceResponse | None, int]:
        policy = config.policy(self.phase)
        max_attempts = policy.retries + 1

        for attempt in range(1, max_attempts + 1):
            try:
                response = await asyncio.wait_for(
                    self._client.generate(request), timeout=policy.timeout
                )
                return response, attempt
            except asyncio.TimeoutError:
                errors.append(f"attempt {attempt}: timed out after {policy.timeout}s")
                retryable = True
            except InferenceError as exc:
                errors.append(f"attempt {attempt}: {exc.message}")
                retryable = exc.retryable

            if not retryable:
                logger.warning("Phase %s failed with a non-retryable error: %s", self.phase, errors[-1])
                return None, attempt
            if attempt < max_attempts:
                logger.info(
                    "Phase %s attempt %d/%d failed, retrying: %s",
                    self.phase, attempt, max_attempts, errors[-1],
                )
                await asyncio.sleep(policy.retry_delay * attempt)

        logger.warning("Phase %s gave up after %d attempts", self.phase, max_attempts)
        return None, max_attempts

    def _result(
        self,
        *,
        data: T | None = None,
        confidence: float = 0.0,
        succeeded: bool = False,
        errors: list[str] | None = None,
        attempts: int = 0,
        response: InferenceResponse | None = None,
    ) -> PhaseResult[T]:
        return PhaseResult[self._response_model](
            phase=self.phase,
            data=data,
            confidence=confidence,
            succeeded=succeeded,
            errors=errors or [],
            attempts=attempts,
            prompt_tokens=response.prompt_tokens if response else 0,
            completion_tokens=response.completion_tokens if response else 0,
        )


def build_phase_extractors(client: InferenceClient | None) -> dict[PhaseName, PhaseExtractor]:
    return {
        phase: PhaseExtractor(phase, model, client)
        for phase, model in PHASE_RESPONSE_MODELS.items()
    }
