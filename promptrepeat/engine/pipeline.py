"""PromptEngine — entry points for the optimization-and-execution pipeline.

Usage:
    from promptrepeat.engine.pipeline import PromptEngine
    from promptrepeat.engine.types import OptimizationOptions
    from promptrepeat.gateway.backend import GeminiBackend

    engine = PromptEngine(GeminiBackend(api_key="..."))
    result = await engine.execute(
        "Summarize: ...",
        OptimizationOptions(mode="adaptive", enable_alignment=True),
    )
    # result.output, result.repetition_count, result.alignment_status, ...

Stages:
    optimize: intent expansion? → latent anchoring? → repetition transform
    execute:  optimize → one or two generation calls → alignment? → entropy?
"""

from __future__ import annotations

import logging
import time

from promptrepeat.core.config import settings
from promptrepeat.core.metrics import OPTIMIZE_LATENCY, PIPELINE_RUNS
from promptrepeat.engine.anchoring import anchor
from promptrepeat.engine.classifier import TaskClassifier
from promptrepeat.engine.execution import ExecutionOrchestrator
from promptrepeat.engine.expansion import IntentExpander
from promptrepeat.engine.quality import AlignmentVerifier, estimate_entropy
from promptrepeat.engine.repetition import transform
from promptrepeat.engine.types import (
    AlignmentStatus,
    EntropyLevel,
    ExecutionResult,
    OptimizationOptions,
    OptimizationResult,
)
from promptrepeat.gateway.backend import BaseLlmBackend

logger = logging.getLogger(__name__)


class PromptEngine:
    """Optimize and execute prompts against an LLM backend.

    Holds no per-request state; one instance serves all requests.
    """

    def __init__(
        self,
        backend: BaseLlmBackend,
        default_model: str | None = None,
        auxiliary_model: str | None = None,
        timeout: float | None = None,
    ):
        self.backend = backend
        self.default_model = default_model or settings.default_model
        self.auxiliary_model = auxiliary_model or settings.auxiliary_model
        self.timeout = timeout or settings.llm_timeout_seconds

        self.classifier = TaskClassifier(backend, self.auxiliary_model, self.timeout)
        self.expander = IntentExpander(backend, self.auxiliary_model, self.timeout)
        self.verifier = AlignmentVerifier(backend, self.auxiliary_model, self.timeout)
        self.orchestrator = ExecutionOrchestrator(backend, self.timeout)

    async def optimize(
        self,
        prompt: str,
        options: OptimizationOptions | None = None,
    ) -> OptimizationResult:
        """Rewrite ``prompt`` according to ``options``.

        Classifier and expander failures degrade to their fallbacks, so this
        only raises for an unsupported mode.
        """
        options = options or OptimizationOptions()
        start = time.perf_counter()

        working = prompt
        intent_expanded = False
        anchors_applied = False

        if options.enable_intent_expansion:
            working = await self.expander.expand(working)
            intent_expanded = True

        if options.enable_latent_anchoring:
            working = anchor(working)
            anchors_applied = True

        result = await transform(working, options.mode, options.segments, classifier=self.classifier)

        elapsed = time.perf_counter() - start
        OPTIMIZE_LATENCY.labels(mode=options.mode.value).observe(elapsed)

        return OptimizationResult(
            original_prompt=prompt,
            optimized_prompt=result.text,
            mode=options.mode,
            latency_ms=round(elapsed * 1000),
            task_type=result.task_type,
            repetition_count=result.repetition_count,
            intent_expanded=intent_expanded,
            anchors_applied=anchors_applied,
        )

    async def execute(
        self,
        prompt: str,
        options: OptimizationOptions | None = None,
    ) -> ExecutionResult:
        """Optimize ``prompt`` and generate an answer for it.

        Raises:
            ExecutionFailedError: a primary generation call failed.
        """
        options = options or OptimizationOptions()
        model = options.model or self.default_model

        try:
            optimization = await self.optimize(prompt, options)
            outcome = await self.orchestrator.run(prompt, optimization.optimized_prompt, options.mode, model)
        except Exception:
            PIPELINE_RUNS.labels(operation="execute", mode=options.mode.value, status="error").inc()
            raise

        alignment_status = AlignmentStatus.PASSED
        if options.enable_alignment:
            alignment_status = await self.verifier.verify(outcome.output)

        entropy_level = EntropyLevel.LOW
        if options.enable_entropy_monitoring:
            entropy_level = estimate_entropy(optimization.task_type, outcome.confidence_score)

        PIPELINE_RUNS.labels(operation="execute", mode=options.mode.value, status="success").inc()
        logger.info(
            "Executed prompt: mode=%s task=%s repetition=%s model=%s calls=%d optimize_ms=%d",
            options.mode.value,
            optimization.task_type.value,
            optimization.repetition_label,
            model,
            outcome.backend_calls,
            optimization.latency_ms,
        )

        return ExecutionResult.from_optimization(
            optimization,
            output=outcome.output,
            alignment_status=alignment_status,
            confidence_score=outcome.confidence_score,
            entropy_level=entropy_level,
        )
