"""Intent expansion — best-effort rewrite of the prompt with unpacked goals.

Fails open: on any backend problem, or an empty answer, the original prompt
is returned unchanged.
"""

from __future__ import annotations

import logging

from promptrepeat.gateway.backend import BaseLlmBackend, generate_with_timeout

logger = logging.getLogger(__name__)

_EXPAND_TEMPLATE = """Analyze the user's intent in this prompt and expand it with necessary context, constraints, and implicit goals to ensure the LLM has a foundational understanding. Respond with ONLY the expanded prompt.

        Original Prompt: {prompt}"""


class IntentExpander:
    def __init__(self, backend: BaseLlmBackend, model: str, timeout: float = 60.0):
        self.backend = backend
        self.model = model
        self.timeout = timeout

    async def expand(self, prompt: str) -> str:
        try:
            text = await generate_with_timeout(
                self.backend,
                self.model,
                _EXPAND_TEMPLATE.format(prompt=prompt),
                self.timeout,
                stage="intent_expansion",
            )
        except Exception as e:
            logger.warning("Intent expansion failed, keeping original prompt: %s", e)
            return prompt

        return text or prompt
