"""Sentry error tracking for the API process.

Enabled only when SENTRY_DSN is set. Prompt text and model output never
leave the process: request bodies are dropped from events before sending.
"""

import logging

from promptrepeat import __version__
from promptrepeat.core.config import settings

logger = logging.getLogger(__name__)


def scrub_event(event: dict, hint: dict) -> dict:
    """Remove request payloads (user prompts) from a Sentry event."""
    request = event.get("request")
    if isinstance(request, dict) and "data" in request:
        request["data"] = "[scrubbed]"
    return event


def init_sentry() -> bool:
    """Initialize Sentry if configured. Returns True when reporting is on."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, error reporting disabled")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=f"promptrepeat@{__version__}",
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[FastApiIntegration(transaction_style="endpoint")],
    )
    logger.info("Sentry initialized (env=%s, release=%s)", settings.app_env, __version__)
    return True
