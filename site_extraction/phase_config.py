"""Static extraction policy: models, budgets and confidence gates per phase.

Built once per run into an ``ExtractionConfig`` and passed down explicitly;
nothing below reads the environment.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from site_extraction.schemas.extraction import PhaseName

VISION_MODEL = "x-ai/grok-2-vision-1212"
TEXT_MODEL = "x-ai/grok-code-fast-1"
ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


class ModelRole(StrEnum):
    vision = "vision"
    text = "text"


class DataCategory(StrEnum):
    brand_colors = "brand_colors"
    contact_info = "contact_info"
    content = "content"
    images = "images"
    social_links = "social_links"


class PhasePolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    model_role: ModelRole
    category: DataCategory
    temperature: float
    max_tokens: int
    timeout: float  # seconds, per attempt
    retries: int  # extra attempts after the first one
    retry_delay: float  # seconds, multiplied by the attempt number


class ConfidenceThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    brand_colors: float = 0.3
    contact_info: float = 0.3
    content: float = 0.3
    images: float = 0.3
    social_links: float = 0.3
    # Above this an accepted inference result owns its whole category
    prefer_llm: float = 0.5

    def for_category(self, category: DataCategory) -> float:
        return getattr(self, category.value)


class ExtractionBudgets(BaseModel):
    """Soft targets and hard ceilings. Exceeding either only adds a warning."""

    model_config = ConfigDict(frozen=True)

    target_cost_usd: float = 0.01
    max_cost_usd: float = 0.05
    target_duration_ms: int = 20_000
    max_duration_ms: int = 60_000


class ModelPricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_per_million: float
    output_per_million: float

    def cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        return (
            prompt_tokens * self.input_per_million
            + completion_tokens * self.output_per_million
        ) / 1_000_000


DEFAULT_PHASES: dict[PhaseName, PhasePolicy] = {
    PhaseName.phase1: PhasePolicy(
        model_role=ModelRole.vision, category=DataCategory.brand_colors,
        temperature=0.3, max_tokens=2000, timeout=45.0, retries=2, retry_delay=1.0,
    ),
    PhaseName.phase2a: PhasePolicy(
        model_role=ModelRole.text, category=DataCategory.contact_info,
        temperature=0.1, max_tokens=1500, timeout=30.0, retries=2, retry_delay=1.0,
    ),
    PhaseName.phase2b: PhasePolicy(
        model_role=ModelRole.text, category=DataCategory.content,
        temperature=0.2, max_tokens=2500, timeout=30.0, retries=2, retry_delay=1.0,
    ),
    PhaseName.phase2c: PhasePolicy(
        model_role=ModelRole.text, category=DataCategory.content,
        temperature=0.2, max_tokens=3000, timeout=30.0, retries=2, retry_delay=1.0,
    ),
    PhaseName.phase2d: PhasePolicy(
        model_role=ModelRole.text, category=DataCategory.images,
        temperature=0.1, max_tokens=3000, timeout=30.0, retries=2, retry_delay=1.0,
    ),
    PhaseName.phase2e: PhasePolicy(
        model_role=ModelRole.text, category=DataCategory.social_links,
        temperature=0.1, max_tokens=1500, timeout=30.0, retries=2, retry_delay=1.0,
    ),
}

DEFAULT_PRICING: dict[str, ModelPricing] = {
    VISION_MODEL: ModelPricing(input_per_million=2.0, output_per_million=10.0),
    TEXT_MODEL: ModelPricing(input_per_million=0.2, output_per_million=1.5),
    ANTHROPIC_MODEL: ModelPricing(input_per_million=3.0, output_per_million=15.0),
}


class ExtractionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    llm_enabled: bool = True
    enable_fallback: bool = True
    vision_model: str = VISION_MODEL
    text_model: str = TEXT_MODEL
    phases: dict[PhaseName, PhasePolicy] = Field(default_factory=lambda: dict(DEFAULT_PHASES))
    thresholds: ConfidenceThresholds = ConfidenceThresholds()
    budgets: ExtractionBudgets = ExtractionBudgets()
    model_pricing: dict[str, ModelPricing] = Field(default_factory=lambda: dict(DEFAULT_PRICING))
    log_prompts: bool = False
    log_metrics: bool = False

    def policy(self, phase: PhaseName) -> PhasePolicy:
        return self.phases[phase]

    def model_for(self, phase: PhaseName) -> str:
        if self.policy(phase).model_role is ModelRole.vision:
            return self.vision_model
        return self.text_model

    def threshold_for(self, phase: PhaseName) -> float:
        return self.thresholds.for_category(self.policy(phase).category)

    def estimate_cost(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        pricing = self.model_pricing.get(model)
        if pricing is None:
            return 0.0
        return pricing.cost(prompt_tokens, completion_tokens)
