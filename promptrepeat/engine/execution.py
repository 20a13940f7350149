"""Execution orchestrator — drives the primary generation call(s).

  - neural-reasoning: draft pass with the optimized prompt, then a
    critique-and-correct pass over the original task and the draft.
  - every other mode: a single pass with the optimized prompt.

Backend failures here are never swallowed: they are re-raised as
ExecutionFailedError and fail the request.
"""

from __future__ import annotations

import logging

from promptrepeat.core.exceptions import ExecutionFailedError
from promptrepeat.engine.types import GenerationOutcome, RepetitionMode
from promptrepeat.gateway.backend import BackendError, BaseLlmBackend, generate_with_timeout

logger = logging.getLogger(__name__)

SINGLE_PASS_CONFIDENCE = 0.95
SELF_CORRECTION_CONFIDENCE = 0.98

_CRITIQUE_TEMPLATE = (
    "Original Task: {prompt}\n\n"
    "Initial Draft: {draft}\n\n"
    "[CRITICAL REVIEW]: Identify any logical flaws, factual errors, or missing constraints "
    "in the draft above. Provide the corrected, final response."
)


def build_critique_prompt(original_prompt: str, draft: str) -> str:
    return _CRITIQUE_TEMPLATE.format(prompt=original_prompt, draft=draft)


class ExecutionOrchestrator:
    def __init__(self, backend: BaseLlmBackend, timeout: float = 60.0):
        self.backend = backend
        self.timeout = timeout

    async def _generate(self, model: str, contents: str, stage: str) -> str:
        try:
            return await generate_with_timeout(self.backend, model, contents, self.timeout, stage=stage)
        except BackendError as e:
            raise ExecutionFailedError(f"{stage} failed: {e}", stage=stage) from e

    async def run(
        self,
        original_prompt: str,
        optimized_prompt: str,
        mode: RepetitionMode,
        model: str,
    ) -> GenerationOutcome:
        if mode is RepetitionMode.NEURAL_REASONING:
            return await self.run_self_correction(original_prompt, optimized_prompt, model)
        return await self.run_single_pass(optimized_prompt, model)

    async def run_single_pass(self, optimized_prompt: str, model: str) -> GenerationOutcome:
        output = await self._generate(model, optimized_prompt, stage="execution")
        return GenerationOutcome(output=output, confidence_score=SINGLE_PASS_CONFIDENCE)

    async def run_self_correction(self, original_prompt: str, optimized_prompt: str, model: str) -> GenerationOutcome:
        draft = await self._generate(model, optimized_prompt, stage="draft")
        logger.debug("Self-correction draft ready (%d chars), running critique pass", len(draft))
        final = await self._generate(model, build_critique_prompt(original_prompt, draft), stage="critique")
        return GenerationOutcome(
            output=final,
            confidence_score=SELF_CORRECTION_CONFIDENCE,
            backend_calls=2,
            drafts=[draft],
        )
