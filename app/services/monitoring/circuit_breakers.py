"""
Circuit Breaker for External Service Dependencies

Opens after consecutive failures of the event sink so a WebEngage outage
does not add a full HTTP timeout to every worker step and webhook.
Telegram is not wrapped: its 429s are backpressure handled by the
controller, not outages.
"""

import logging
from typing import Dict

import pybreaker

from app.config import settings

logger = logging.getLogger(__name__)


class CircuitBreakerLogListener(pybreaker.CircuitBreakerListener):
    """Logs circuit breaker state changes."""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: pybreaker.CircuitBreakerState, new_state: pybreaker.CircuitBreakerState):
        log = logger.error if new_state.name == pybreaker.STATE_OPEN else logger.warning
        log(
            f"Circuit breaker state change: {cb.name} transitioned from {old_state.name} to {new_state.name}",
            extra={
                "circuit_breaker": cb.name,
                "old_state": old_state.name,
                "new_state": new_state.name,
                "fail_count": cb.fail_counter
            }
        )


def _create_breaker(name: str) -> pybreaker.CircuitBreaker:
    return pybreaker.CircuitBreaker(
        name=name,
        fail_max=settings.circuit_breaker_fail_max,
        reset_timeout=settings.circuit_breaker_reset_timeout,
        listeners=[CircuitBreakerLogListener()]
    )


_KNOWN_SERVICES = {"webengage": "webengage_events"}
_breakers: Dict[str, pybreaker.CircuitBreaker] = {}


def get_breaker(service_name: str) -> pybreaker.CircuitBreaker:
    """
    Get circuit breaker for a specific service.

    Lazy initializes breakers on first access to avoid import-time side effects.

    Raises:
        ValueError: If service_name is not recognized
    """
    if service_name not in _KNOWN_SERVICES:
        raise ValueError(f"Unknown service name: {service_name}. Must be one of {sorted(_KNOWN_SERVICES)}")

    if service_name not in _breakers:
        _breakers[service_name] = _create_breaker(_KNOWN_SERVICES[service_name])
        logger.info(f"Initialized {service_name} circuit breaker")
    return _breakers[service_name]


def get_webengage_breaker() -> pybreaker.CircuitBreaker:
    return get_breaker("webengage")


def reset_breakers() -> None:
    """Drop all breaker instances (tests and config reloads)."""
    _breakers.clear()


# Re-export exception for caller handling
from pybreaker import CircuitBreakerError

__all__ = [
    "CircuitBreakerLogListener",
    "get_breaker",
    "get_webengage_breaker",
    "reset_breakers",
    "CircuitBreakerError",
]
