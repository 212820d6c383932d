"""
Tests for the monitoring helpers: breaker registry, JSON log formatter
"""

import json
import logging

import pybreaker
import pytest

from app.services.monitoring import (
    CircuitBreakerLogListener,
    CorrelationJsonFormatter,
    get_breaker,
    get_webengage_breaker,
    reset_breakers,
)


@pytest.fixture(autouse=True)
def fresh_breakers():
    reset_breakers()
    yield
    reset_breakers()


class TestBreakerRegistry:

    def test_webengage_breaker_is_shared(self):
        breaker = get_webengage_breaker()

        assert breaker is get_breaker("webengage")
        assert breaker.name == "webengage_events"
        assert any(isinstance(l, CircuitBreakerLogListener) for l in breaker.listeners)

    def test_unknown_service_rejected(self):
        with pytest.raises(ValueError):
            get_breaker("zendesk")

    def test_reset_builds_new_instance(self):
        first = get_webengage_breaker()
        reset_breakers()

        assert get_webengage_breaker() is not first

    def test_breaker_opens_after_fail_max(self):
        breaker = get_webengage_breaker()

        def fail():
            raise RuntimeError("down")

        for _ in range(breaker.fail_max - 1):
            with pytest.raises(RuntimeError):
                breaker.call(fail)

        with pytest.raises(pybreaker.CircuitBreakerError):
            breaker.call(fail)
        assert breaker.current_state == pybreaker.STATE_OPEN


class TestCorrelationJsonFormatter:

    def test_adds_service_fields(self):
        formatter = CorrelationJsonFormatter('%(levelname)s %(name)s %(message)s')
        record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "hello", None, None)

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "hello"
        assert payload["service"] == "telegram-invite-broker"
        assert payload["correlation_id"] == "none"
