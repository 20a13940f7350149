"""Core types and enums for the prompt optimization pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum

from promptrepeat.core.exceptions import UnsupportedModeError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RepetitionMode(str, Enum):
    """How the working prompt is repeated or reinforced before generation."""

    X2 = "x2"  # Prompt twice
    X3 = "x3"  # Prompt three times
    SELECTIVE = "selective"  # Repeat only [[marked]] instructions / given segments
    ADAPTIVE = "adaptive"  # Strategy chosen from the classified task type
    NEURAL_REASONING = "neural-reasoning"  # Reasoning markers + self-correction pass


class TaskType(str, Enum):
    """Task category assigned by the classifier."""

    REASONING = "reasoning"
    EXTRACTION = "extraction"
    CREATIVE = "creative"
    CLASSIFICATION = "classification"
    UNKNOWN = "unknown"  # Classification not run (non-adaptive modes)


# Labels the classifier may return
CLASSIFIABLE_TASK_TYPES = (
    TaskType.REASONING,
    TaskType.EXTRACTION,
    TaskType.CREATIVE,
    TaskType.CLASSIFICATION,
)


class AlignmentStatus(str, Enum):
    PASSED = "passed"
    FLAGGED = "flagged"


class EntropyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def parse_mode(value: RepetitionMode | str) -> RepetitionMode:
    """Coerce a mode name to RepetitionMode, rejecting unknown variants."""
    try:
        return RepetitionMode(value)
    except ValueError:
        raise UnsupportedModeError(value) from None


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OptimizationOptions:
    """Per-request pipeline options. Constructed fresh for every request."""

    mode: RepetitionMode = RepetitionMode.X2
    segments: tuple[str, ...] = ()  # Only used by selective mode
    model: str | None = None  # None → configured default model
    enable_alignment: bool = False
    enable_intent_expansion: bool = False
    enable_entropy_monitoring: bool = False
    enable_latent_anchoring: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", parse_mode(self.mode))
        object.__setattr__(self, "segments", tuple(self.segments or ()))


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of the optimize stage."""

    original_prompt: str
    optimized_prompt: str
    mode: RepetitionMode
    latency_ms: int  # Optimize stage only
    task_type: TaskType = TaskType.UNKNOWN
    repetition_count: float = 1  # Advisory "strength" metric, displayed as x2, x1.2, ...
    intent_expanded: bool = False
    anchors_applied: bool = False

    @property
    def repetition_label(self) -> str:
        """Display form of repetition_count, e.g. "x2" or "x1.4"."""
        return f"x{self.repetition_count:g}"

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "original_prompt": self.original_prompt,
            "optimized_prompt": self.optimized_prompt,
            "mode": self.mode.value,
            "latency_ms": self.latency_ms,
            "task_type": self.task_type.value,
            "repetition_count": self.repetition_count,
            "intent_expanded": self.intent_expanded,
            "anchors_applied": self.anchors_applied,
        }


@dataclass(frozen=True)
class ExecutionResult(OptimizationResult):
    """Optimization result plus the model output and quality signals."""

    output: str = ""
    alignment_status: AlignmentStatus = AlignmentStatus.PASSED
    confidence_score: float = 0.95
    entropy_level: EntropyLevel = EntropyLevel.LOW  # Only meaningful with entropy monitoring

    @classmethod
    def from_optimization(cls, optimization: OptimizationResult, **kwargs) -> ExecutionResult:
        base = {f.name: getattr(optimization, f.name) for f in fields(OptimizationResult)}
        return cls(**base, **kwargs)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            {
                "output": self.output,
                "alignment_status": self.alignment_status.value,
                "confidence_score": self.confidence_score,
                "entropy_level": self.entropy_level.value,
            }
        )
        return data


@dataclass(frozen=True)
class Transformation:
    """Output of a single repetition-mode transform."""

    text: str
    repetition_count: float
    task_type: TaskType = TaskType.UNKNOWN


@dataclass
class GenerationOutcome:
    """Result of the execution stage (one or two backend calls)."""

    output: str
    confidence_score: float
    backend_calls: int = 1
    drafts: list[str] = field(default_factory=list)  # Intermediate drafts (self-correction only)
