"""PromptRepeat — prompt optimization middleware for LLM backends.

Rewrites a prompt (repetition, anchoring, intent expansion) before sending it
to the model, then reports quality signals about the answer.
"""

__version__ = "1.0.0"
