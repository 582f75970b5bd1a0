from pydantic_settings import BaseSettings

from site_extraction.phase_config import (
    ANTHROPIC_MODEL,
    TEXT_MODEL,
    VISION_MODEL,
    ExtractionConfig,
)


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    inference_provider: str = "openrouter"  # "openrouter" | "anthropic"
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    anthropic_api_key: str = ""
    vision_model: str = VISION_MODEL
    text_model: str = TEXT_MODEL
    llm_extraction_enabled: bool = True
    enable_fallback: bool = True
    log_level: str = "INFO"
    log_prompts: bool = False
    log_metrics: bool = False
    debug_capture_enabled: bool = False
    debug_capture_dir: str = ".debug/scraped-html"
    debug_capture_max_age_hours: float = 24.0
    debug_capture_max_total_mb: float = 200.0
    debug_capture_max_sessions: int = 50
    debug_capture_cleanup_interval_s: float = 3600.0

    @property
    def inference_api_key(self) -> str:
        if self.inference_provider == "anthropic":
            return self.anthropic_api_key
        return self.openrouter_api_key


def _model_for_provider(settings: Settings, model: str) -> str:
    # OpenRouter slugs ("vendor/model") mean nothing to the Anthropic API
    if settings.inference_provider == "anthropic" and "/" in model:
        return ANTHROPIC_MODEL
    return model


def build_extraction_config(settings: Settings) -> ExtractionConfig:
    """Freeze the environment-driven flags into a per-run config object."""
    return ExtractionConfig(
        llm_enabled=settings.llm_extraction_enabled and bool(settings.inference_api_key),
        enable_fallback=settings.enable_fallback,
        vision_model=_model_for_provider(settings, settings.vision_model),
        text_model=_model_for_provider(settings, settings.text_model),
        log_prompts=settings.log_prompts,
        log_metrics=settings.log_metrics,
    )
