"""
Monitoring Module
Exports for structured logging, circuit breakers and error tracking
"""

from app.services.monitoring.logging import setup_logging, configure_structlog, CorrelationJsonFormatter
from app.services.monitoring.circuit_breakers import (
    get_breaker,
    get_webengage_breaker,
    reset_breakers,
    CircuitBreakerError,
    CircuitBreakerLogListener,
)
from app.services.monitoring.error_tracking import init_sentry, set_processing_context

__all__ = [
    "setup_logging",
    "configure_structlog",
    "CorrelationJsonFormatter",
    "get_breaker",
    "get_webengage_breaker",
    "reset_breakers",
    "CircuitBreakerError",
    "CircuitBreakerLogListener",
    "init_sentry",
    "set_processing_context",
]
