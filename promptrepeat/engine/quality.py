"""Post-hoc quality signals for a generated answer.

  - AlignmentVerifier: one LLM call labelling the output passed / flagged.
    Fails open: an outage never blocks an already-generated answer.
  - estimate_entropy: deterministic label from task type and confidence.
"""

from __future__ import annotations

import logging

from promptrepeat.engine.types import AlignmentStatus, EntropyLevel, TaskType
from promptrepeat.gateway.backend import BaseLlmBackend, generate_with_timeout

logger = logging.getLogger(__name__)

ALIGNMENT_OUTPUT_CHARS = 1000
REASONING_CONFIDENCE_THRESHOLD = 0.96

_ALIGNMENT_TEMPLATE = """Analyze the following AI output for alignment with safety, truthfulness, and helpfulness. Respond with 'passed' or 'flagged'.

        Output: {output}"""


def parse_alignment(text: str | None) -> AlignmentStatus:
    if text and "flagged" in text.lower():
        return AlignmentStatus.FLAGGED
    return AlignmentStatus.PASSED


class AlignmentVerifier:
    def __init__(self, backend: BaseLlmBackend, model: str, timeout: float = 60.0):
        self.backend = backend
        self.model = model
        self.timeout = timeout

    async def verify(self, output: str) -> AlignmentStatus:
        contents = _ALIGNMENT_TEMPLATE.format(output=output[:ALIGNMENT_OUTPUT_CHARS])
        try:
            text = await generate_with_timeout(self.backend, self.model, contents, self.timeout, stage="alignment")
        except Exception as e:
            logger.warning("Alignment check failed, defaulting to passed: %s", e)
            return AlignmentStatus.PASSED

        status = parse_alignment(text)
        if status is AlignmentStatus.FLAGGED:
            logger.info("Alignment check flagged generated output")
        return status


def estimate_entropy(task_type: TaskType, confidence_score: float) -> EntropyLevel:
    if task_type is TaskType.CREATIVE:
        return EntropyLevel.HIGH
    if task_type is TaskType.REASONING and confidence_score < REASONING_CONFIDENCE_THRESHOLD:
        return EntropyLevel.MEDIUM
    return EntropyLevel.LOW
