"""
Sentry Error Tracking
Reports worker and webhook failures with request context
"""

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

logger = logging.getLogger(__name__)


def init_sentry(settings) -> None:
    """
    Initialize Sentry SDK with FastAPI integration.

    If SENTRY_DSN is not configured, logs warning and returns (disabled).
    """
    if settings.sentry_dsn is None:
        logger.warning("Sentry DSN not configured - error tracking disabled")
        return

    try:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.sentry_environment or settings.environment,
            traces_sample_rate=0.1,
            integrations=[
                FastApiIntegration(),
            ],
        )
        logger.info(
            "Sentry initialized",
            extra={"environment": settings.sentry_environment or settings.environment}
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def set_processing_context(
    request_id: str,
    actor: str,
    correlation_id: Optional[str] = None
) -> None:
    """
    Tag the current Sentry scope with the invite request being processed.

    Args:
        request_id: InviteRequest.request_id
        actor: Entry point name ("invite_worker", "telegram_webhook", ...)
        correlation_id: Optional correlation ID for request tracking
    """
    sentry_sdk.set_context("processing", {
        "request_id": request_id,
        "actor": actor,
        "correlation_id": correlation_id or "none"
    })
    sentry_sdk.set_tag("request_id", request_id)
    sentry_sdk.set_tag("actor", actor)

    if correlation_id:
        sentry_sdk.set_tag("correlation_id", correlation_id)
