"""
Application Configuration
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    database_url: Optional[str] = None

    # Redis & Job Queue
    redis_url: Optional[str] = None

    # Environment
    environment: str = "development"

    # Public base URL of this service (used in logs and health output)
    base_url: Optional[str] = None

    # Telegram (invite link issuer + redemption webhook)
    telegram_bot_token: Optional[str] = None
    telegram_channel_id: Optional[str] = None
    telegram_api_base: str = "https://api.telegram.org"
    telegram_webhook_secret: Optional[str] = None  # X-Telegram-Bot-Api-Secret-Token

    # WebEngage (business event sink)
    webengage_license_code: Optional[str] = None
    webengage_api_key: Optional[str] = None
    webengage_api_base: str = "https://api.webengage.com"
    link_created_event: str = "pass_paid_community_telegram_link_created"
    joined_event: str = "pass_paid_community_telegram_joined"

    # Invite lifecycle
    max_attempts: int = 50  # Attempt ceiling before a request is FAILED
    default_retry_after_seconds: int = 10  # Used when Telegram sends no retry_after
    transient_backoff_max_seconds: int = 300
    invite_name_max_length: int = 32  # Telegram accepts 0-32 characters for an invite link name
    processing_lease_seconds: int = 120  # PROCESSING older than this may be re-claimed
    http_timeout_seconds: float = 10.0

    # Worker endpoint trust header (injected by the task queue)
    worker_trust_header: str = "x-cloudtasks-queuename"

    # Notification replay job
    notification_replay_interval_minutes: int = 15
    notification_replay_batch_size: int = 100

    # Circuit Breaker Configuration
    circuit_breaker_fail_max: int = 5  # Consecutive failures before opening circuit
    circuit_breaker_reset_timeout: int = 60  # Seconds before auto-recovery attempt

    # Sentry Error Tracking
    sentry_dsn: Optional[str] = None
    sentry_environment: Optional[str] = None  # Defaults to environment setting

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
