"""LLM backend layer.

Wraps the external text-generation service behind one capability,
``generate(model, contents) -> str``, with a bounded call latency.
"""
