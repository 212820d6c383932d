"""
APScheduler Background Jobs

Periodic re-delivery of unconfirmed link-created events.
Jobs run via BackgroundScheduler in the FastAPI process.
"""

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = structlog.get_logger(__name__)


def run_notification_replay():
    """
    Wrapper function for the scheduled notification replay job.

    Errors are logged and swallowed so one bad run does not remove the
    job from the scheduler.
    """
    try:
        from app.services.container import get_container

        try:
            container = get_container()
        except RuntimeError:
            logger.warning("notification_replay_skipped", reason="database_not_configured")
            return

        container.replay.run()

    except Exception as e:
        logger.error("notification_replay_crashed", error=str(e), exc_info=True)


def start_scheduler(settings) -> BackgroundScheduler:
    """
    Start background scheduler with all jobs.

    Args:
        settings: Settings instance (skip scheduler in testing)

    Returns:
        BackgroundScheduler instance
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    if settings.environment == "testing":
        logger.info("scheduler_skipped", reason="testing_environment")
        return scheduler

    scheduler.add_job(
        run_notification_replay,
        trigger=IntervalTrigger(minutes=settings.notification_replay_interval_minutes),
        id="notification_replay",
        name="Replay unconfirmed link-created events",
        replace_existing=True
    )
    logger.info("job_registered", job="notification_replay",
                interval_minutes=settings.notification_replay_interval_minutes)

    scheduler.start()
    logger.info("scheduler_started", jobs=["notification_replay"])

    return scheduler


def stop_scheduler(scheduler: BackgroundScheduler):
    """
    Stop background scheduler gracefully.

    Args:
        scheduler: BackgroundScheduler instance to stop
    """
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


__all__ = [
    "start_scheduler",
    "stop_scheduler",
    "run_notification_replay",
]
