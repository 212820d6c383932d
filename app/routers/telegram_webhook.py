"""
Telegram Webhook Router
Receives chat_member updates and records invite redemptions
"""

from typing import Optional
import hmac

import structlog
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.models.schemas import TelegramUpdate
from app.routers.dependencies import get_services
from app.services.container import ServiceContainer
from app.services.redemption import RedemptionOutcome

logger = structlog.get_logger()

router = APIRouter(prefix="/v1/telegram", tags=["telegram-webhook"])


def verify_secret_token(received: Optional[str], secret: Optional[str]) -> bool:
    """
    Check X-Telegram-Bot-Api-Secret-Token against the configured secret.

    No configured secret means verification is disabled.
    """
    if not secret:
        return True
    if not received:
        return False
    return hmac.compare_digest(received, secret)


@router.post("/webhook", response_class=PlainTextResponse)
async def receive_telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
    services: ServiceContainer = Depends(get_services)
):
    """
    Always answers 200 so Telegram never retry-storms this endpoint.

    Body is the plain-text outcome: ignored, orphan, missing, duplicate, ok.
    """
    if not verify_secret_token(x_telegram_bot_api_secret_token, services.settings.telegram_webhook_secret):
        logger.warning("telegram_webhook_bad_secret")
        return PlainTextResponse(RedemptionOutcome.IGNORED.value)

    try:
        update = TelegramUpdate.model_validate(await request.json())
    except (ValidationError, ValueError) as e:
        logger.info("telegram_webhook_unparseable", error=str(e))
        return PlainTextResponse(RedemptionOutcome.IGNORED.value)

    try:
        outcome = await run_in_threadpool(services.redemption.handle_update, update)
    except Exception as e:
        # Acknowledge anyway; the error is in logs/Sentry
        logger.error("telegram_webhook_error", update_id=update.update_id, error=str(e), exc_info=True)
        return PlainTextResponse("error")

    logger.info("telegram_webhook_handled", update_id=update.update_id, outcome=outcome.value)
    return PlainTextResponse(outcome.value)
