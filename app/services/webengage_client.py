"""
WebEngage Event Notifier
Fires the two business events of the invite flow. Delivery is
best-effort: every failure is logged and reported as False.
"""

from typing import Optional

import httpx
import pybreaker
import structlog

from app.services.errors import NotificationError
from app.services.monitoring.circuit_breakers import get_webengage_breaker

logger = structlog.get_logger(__name__)


class WebEngageNotifier:
    """
    Notification sink: send(user_id, event_name, event_data) -> bool.

    Calls go through the "webengage" circuit breaker; while it is open,
    send() returns False immediately without touching the network.
    """

    def __init__(
        self,
        settings,
        http_client: Optional[httpx.Client] = None,
        breaker: Optional[pybreaker.CircuitBreaker] = None
    ):
        self.settings = settings
        self._client = http_client
        self._breaker = breaker

    def _get_client(self) -> httpx.Client:
        """Lazy-init httpx client to avoid import-time side effects."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.http_timeout_seconds)
        return self._client

    def _get_breaker(self) -> pybreaker.CircuitBreaker:
        if self._breaker is None:
            self._breaker = get_webengage_breaker()
        return self._breaker

    def _post_event(self, user_id: str, event_name: str, event_data: dict) -> None:
        base = self.settings.webengage_api_base.rstrip("/")
        url = f"{base}/v1/accounts/{self.settings.webengage_license_code}/events"

        try:
            response = self._get_client().post(
                url,
                json={
                    "userId": str(user_id),
                    "eventName": event_name,
                    "eventData": event_data,
                },
                headers={"Authorization": f"Bearer {self.settings.webengage_api_key}"},
                timeout=self.settings.http_timeout_seconds
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"WebEngage request failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"WebEngage returned {response.status_code}: {response.text[:200]}"
            )

    def send(self, user_id: str, event_name: str, event_data: dict) -> bool:
        """
        Fire a WebEngage event for a user.

        Returns:
            True only when WebEngage acknowledged the event with a 2xx
        """
        if not self.settings.webengage_license_code or not self.settings.webengage_api_key:
            logger.warning("webengage_not_configured", event_name=event_name)
            return False

        try:
            self._get_breaker().call(self._post_event, user_id, event_name, event_data)
        except pybreaker.CircuitBreakerError:
            logger.warning("webengage_circuit_open", event_name=event_name, user_id=str(user_id))
            return False
        except NotificationError as e:
            logger.warning("webengage_event_failed", event_name=event_name, user_id=str(user_id), error=str(e))
            return False
        except Exception as e:
            logger.error(
                "webengage_event_error",
                event_name=event_name,
                user_id=str(user_id),
                error=str(e),
                exception_type=type(e).__name__
            )
            return False

        logger.info("webengage_event_sent", event_name=event_name, user_id=str(user_id))
        return True
