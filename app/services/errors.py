"""
Invite Lifecycle Errors

Exception taxonomy for the invite pipeline. Issuer errors are raised by
TelegramInviteClient and absorbed by the controller, which turns them
into a reschedule or a terminal FAILED status. Nothing below ever
reaches the task queue.
"""

from typing import Optional


class InviteValidationError(ValueError):
    """Required client input is missing (surfaced as HTTP 400)."""


class IssuerError(Exception):
    """Base class for invite link issuance failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(IssuerError):
    """
    Telegram answered 429 / carried parameters.retry_after.

    retry_after is None when the response had no usable hint; the
    controller falls back to settings.default_retry_after_seconds.
    """

    def __init__(self, message: str, retry_after: Optional[int] = None, status_code: Optional[int] = 429):
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code)


class TransientIssuerError(IssuerError):
    """Network failure, timeout, 5xx or an unusable success body."""


class FatalIssuerError(IssuerError):
    """Non-retryable rejection (bad token, unknown chat, missing admin rights)."""


class NotificationError(Exception):
    """Event sink delivery failed. Always converted to a False result."""
