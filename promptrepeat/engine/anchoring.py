"""Latent anchoring — wraps the prompt in coherence-preserving marker lines."""

ANCHOR_HEADER = "[ANCHOR: FOUNDATIONAL CONSTRAINTS ENABLED]"
ANCHOR_FOOTER = "[ANCHOR: MAINTAIN SEMANTIC COHERENCE TO ORIGINAL INTENT]"


def anchor(prompt: str) -> str:
    return f"{ANCHOR_HEADER}\n{prompt}\n\n{ANCHOR_FOOTER}"
