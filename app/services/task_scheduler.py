"""
Task Scheduler
Enqueues worker steps for invite requests on the Dramatiq broker
"""

import structlog

logger = structlog.get_logger(__name__)


class SchedulingError(Exception):
    """The broker refused or could not receive the message."""


class DramatiqTaskScheduler:
    """
    schedule(request_id, delay_seconds) -> one process_invite_request message.

    Delivery is at-least-once; the controller tolerates duplicates.
    """

    def schedule(self, request_id: str, delay_seconds: int = 0) -> None:
        # Lazy import: the actor module builds the controller, which owns a scheduler
        from app.actors.invite_worker import process_invite_request

        options = {}
        if delay_seconds and delay_seconds > 0:
            options["delay"] = int(delay_seconds * 1000)

        try:
            process_invite_request.send_with_options(args=(request_id,), **options)
        except Exception as e:
            logger.error("invite_step_enqueue_failed", request_id=request_id, delay_seconds=delay_seconds, error=str(e))
            raise SchedulingError(f"Failed to enqueue worker step for {request_id}: {e}") from e

        logger.info("invite_step_enqueued", request_id=request_id, delay_seconds=delay_seconds)
