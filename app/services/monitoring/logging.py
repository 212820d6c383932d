"""
Structured JSON Logging with Correlation ID
Configures structlog and a JSON formatter for stdlib records, both tagged
with the request correlation ID
"""

import logging
import sys
import os

import structlog
from pythonjsonlogger import jsonlogger
from asgi_correlation_id.context import correlation_id


class CorrelationJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with automatic correlation ID injection.

    Used for stdlib loggers (uvicorn, dramatiq, sqlalchemy, httpx) so
    their records line up with the structlog output.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['correlation_id'] = correlation_id.get() or 'none'
        log_record['service'] = 'telegram-invite-broker'
        log_record['environment'] = os.getenv('ENVIRONMENT', 'development')


def _add_correlation_id(logger, method_name, event_dict):
    """structlog processor: attach the current correlation ID."""
    event_dict.setdefault('correlation_id', correlation_id.get() or 'none')
    return event_dict


def configure_structlog():
    """Configure structlog to render ISO-timestamped JSON events."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            _add_correlation_id,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ]
    )


def setup_logging(level: int = logging.INFO):
    """
    Configure structured JSON logging to stdout for the whole process.

    Returns:
        logging.Handler: The configured stdlib handler (for testing)
    """
    configure_structlog()

    handler = logging.StreamHandler(sys.stdout)

    formatter = CorrelationJsonFormatter(
        '%(timestamp)s %(level)s %(name)s %(message)s',
        rename_fields={
            'timestamp': 'asctime',
            'level': 'levelname'
        }
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    return handler
