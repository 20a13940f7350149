"""Prompt optimization engine — counteracts instruction drift before generation.

Pipeline:
  1. Intent Expansion (optional LLM rewrite, fails open)
  2. Latent Anchoring (optional coherence markers)
  3. Repetition Transform (x2 / x3 / selective / adaptive / neural-reasoning)
  4. Execution Orchestrator (single pass or draft + self-correction)
  5. Quality Signals (alignment check, entropy estimate)
"""
