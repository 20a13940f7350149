"""Pydantic schemas for the optimize API.

Field names are snake_case in Python and camelCase on the wire
(``enableAlignment``, ``optimizedPrompt``...); both spellings are accepted
on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from promptrepeat.engine.types import (
    AlignmentStatus,
    EntropyLevel,
    OptimizationOptions,
    RepetitionMode,
    TaskType,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class OptimizeRequest(_CamelModel):
    """Prompt plus pipeline options."""

    prompt: str = Field(min_length=1, max_length=100_000, description="Prompt to optimize")
    mode: RepetitionMode = Field(RepetitionMode.X2, description="Repetition mode")
    segments: list[str] | None = Field(
        None,
        max_length=50,
        description="Key segments to repeat (selective mode only)",
    )
    model: str | None = Field(None, max_length=100, description="Execution model; server default when omitted")
    enable_alignment: bool = Field(False, description="Run the post-hoc alignment check")
    enable_intent_expansion: bool = Field(False, description="Expand implicit intent before repetition")
    enable_entropy_monitoring: bool = Field(False, description="Report an entropy estimate")
    enable_latent_anchoring: bool = Field(False, description="Wrap the prompt in anchor markers")

    def to_options(self) -> OptimizationOptions:
        return OptimizationOptions(
            mode=self.mode,
            segments=tuple(self.segments or ()),
            model=self.model or None,
            enable_alignment=self.enable_alignment,
            enable_intent_expansion=self.enable_intent_expansion,
            enable_entropy_monitoring=self.enable_entropy_monitoring,
            enable_latent_anchoring=self.enable_latent_anchoring,
        )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OptimizationResponse(_CamelModel):
    original_prompt: str
    optimized_prompt: str
    mode: RepetitionMode
    latency_ms: int
    task_type: TaskType
    repetition_count: float
    intent_expanded: bool
    anchors_applied: bool


class ExecutionResponse(OptimizationResponse):
    output: str
    alignment_status: AlignmentStatus
    confidence_score: float
    entropy_level: EntropyLevel


class HealthResponse(BaseModel):
    status: str
    default_model: str
    backend_configured: bool
    rate_limiter: dict
