"""
Dramatiq Worker Entrypoint

This module serves as the entry point for Dramatiq workers.
It imports all actor modules to register them with the broker.

Usage:
    dramatiq app.worker --processes 2 --threads 4 --verbose

Procfile Configuration:
    worker: dramatiq app.worker --processes 2 --threads 4 --verbose

Worker steps are I/O-bound (one Telegram call, a few single-row writes,
one WebEngage call), so threads scale well here.
"""

import structlog

from app.config import settings
from app.services.monitoring import setup_logging, init_sentry
from app.actors import broker

setup_logging()
init_sentry(settings)
logger = structlog.get_logger()

# Worker health check log
logger.info("worker_ready", broker=type(broker).__name__)
