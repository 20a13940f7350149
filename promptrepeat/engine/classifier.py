"""Task classifier — labels a prompt with its task category via one LLM call.

Only the opening of the prompt is sent. Any failure or unexpected answer
falls back to ``classification``; a classifier problem never fails the
pipeline.
"""

from __future__ import annotations

import logging

from promptrepeat.engine.types import CLASSIFIABLE_TASK_TYPES, TaskType
from promptrepeat.gateway.backend import BaseLlmBackend, generate_with_timeout

logger = logging.getLogger(__name__)

CLASSIFY_PREFIX_CHARS = 500
FALLBACK_TASK_TYPE = TaskType.CLASSIFICATION

_CLASSIFY_TEMPLATE = """Classify the following prompt into one of these categories: reasoning, extraction, creative, classification. Respond with ONLY the category name.

        Prompt: {prompt}"""


def parse_task_type(text: str | None) -> TaskType:
    """Map a raw classifier answer to a TaskType (fallback on anything unexpected)."""
    label = (text or "").lower().strip()
    for task_type in CLASSIFIABLE_TASK_TYPES:
        if label == task_type.value:
            return task_type
    return FALLBACK_TASK_TYPE


class TaskClassifier:
    def __init__(self, backend: BaseLlmBackend, model: str, timeout: float = 60.0):
        self.backend = backend
        self.model = model
        self.timeout = timeout

    async def classify(self, prompt: str) -> TaskType:
        contents = _CLASSIFY_TEMPLATE.format(prompt=prompt[:CLASSIFY_PREFIX_CHARS])
        try:
            text = await generate_with_timeout(
                self.backend, self.model, contents, self.timeout, stage="classification"
            )
        except Exception as e:
            logger.warning("Classification failed, defaulting to %s: %s", FALLBACK_TASK_TYPE.value, e)
            return FALLBACK_TASK_TYPE

        task_type = parse_task_type(text)
        if task_type is FALLBACK_TASK_TYPE and (text or "").lower().strip() != FALLBACK_TASK_TYPE.value:
            logger.info("Unrecognized classifier label %r, defaulting to %s", text, FALLBACK_TASK_TYPE.value)
        return task_type
