"""
Telegram Bot API Client

Synchronous client for createChatInviteLink, the issuer of single-use
invite links. Failures are classified into rate-limited, transient and
fatal issuer errors for the lifecycle controller.
"""

from typing import Optional

import httpx
import structlog

from app.services.errors import FatalIssuerError, RateLimitedError, TransientIssuerError

logger = structlog.get_logger(__name__)


def _retry_after(body: dict) -> Optional[int]:
    """Extract parameters.retry_after from a Telegram error body."""
    parameters = body.get("parameters") or {}
    try:
        value = int(parameters.get("retry_after"))
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class TelegramInviteClient:
    """
    Issues one-member invite links for the configured channel.

    Usage:
        client = TelegramInviteClient(settings)
        link = client.create_invite_link("uid:42|txn:abc|rid:...")
    """

    def __init__(self, settings, http_client: Optional[httpx.Client] = None):
        """
        Args:
            settings: Settings instance (bot token, channel id, timeout)
            http_client: Optional preconfigured httpx.Client (tests inject a MockTransport)
        """
        self.settings = settings
        self._client = http_client

    def _get_client(self) -> httpx.Client:
        """Lazy-init httpx client to avoid import-time side effects."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.http_timeout_seconds)
        return self._client

    def _method_url(self, method: str) -> str:
        base = self.settings.telegram_api_base.rstrip("/")
        return f"{base}/bot{self.settings.telegram_bot_token}/{method}"

    def create_invite_link(self, name: str) -> str:
        """
        Create a single-use invite link (member_limit=1).

        Args:
            name: Human-traceable link label, already truncated by the caller

        Returns:
            The invite link URL

        Raises:
            RateLimitedError: 429 or a retry_after hint in the error body
            TransientIssuerError: network error, timeout, 5xx, unusable body
            FatalIssuerError: any other rejection, or bot not configured
        """
        if not self.settings.telegram_bot_token or not self.settings.telegram_channel_id:
            raise FatalIssuerError("Telegram bot token or channel id not configured")

        try:
            response = self._get_client().post(
                self._method_url("createChatInviteLink"),
                json={
                    "chat_id": self.settings.telegram_channel_id,
                    "member_limit": 1,
                    "name": name,
                },
                timeout=self.settings.http_timeout_seconds
            )
        except httpx.TimeoutException as e:
            logger.warning("telegram_request_timeout", error=str(e))
            raise TransientIssuerError(f"Telegram request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("telegram_request_error", error=str(e), exception_type=type(e).__name__)
            raise TransientIssuerError(f"Telegram request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        description = body.get("description") or response.text[:200]

        if response.is_success and body.get("ok", True):
            result = body.get("result")
            invite_link = result.get("invite_link") if isinstance(result, dict) else None
            if not invite_link:
                logger.warning("telegram_invite_link_missing", status=response.status_code)
                raise TransientIssuerError("Telegram response carried no invite_link", status_code=response.status_code)
            return invite_link

        retry_after = _retry_after(body)
        if response.status_code == 429 or retry_after is not None:
            logger.info("telegram_rate_limited", status=response.status_code, retry_after=retry_after)
            raise RateLimitedError(
                f"Telegram rate limited: {description}",
                retry_after=retry_after,
                status_code=response.status_code
            )

        if response.status_code >= 500:
            logger.warning("telegram_server_error", status=response.status_code, description=description)
            raise TransientIssuerError(
                f"Telegram server error {response.status_code}: {description}",
                status_code=response.status_code
            )

        logger.error("telegram_request_rejected", status=response.status_code, description=description)
        raise FatalIssuerError(
            f"Telegram rejected createChatInviteLink ({response.status_code}): {description}",
            status_code=response.status_code
        )
