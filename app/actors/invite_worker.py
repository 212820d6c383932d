"""
Invite Worker Actor
Runs one lifecycle step per message. Issuance retries are scheduled by
the controller itself as new delayed messages, not by Dramatiq retries.
"""

import dramatiq
import structlog

logger = structlog.get_logger()


def should_retry(retries_so_far: int, exception: Exception) -> bool:
    """
    Retry only when the controller could not reach the broker to
    reschedule, or the database was unreachable. Everything else was
    already turned into a stored status by the controller.

    Args:
        retries_so_far: Number of retries attempted so far
        exception: The exception that was raised

    Returns:
        True if should retry (and haven't exceeded max retries), False otherwise
    """
    # Lazy import to avoid import-time dependencies
    from sqlalchemy.exc import OperationalError
    from app.services.task_scheduler import SchedulingError

    retryable_types = (
        SchedulingError,
        OperationalError,
        ConnectionError,
        TimeoutError,
    )

    if isinstance(exception, retryable_types):
        will_retry = retries_so_far < 5
        logger.info("retryable_exception",
                    exception_type=type(exception).__name__,
                    retries=retries_so_far,
                    will_retry=will_retry)
        return will_retry

    logger.error("non_retryable_exception",
                 exception_type=type(exception).__name__,
                 retries=retries_so_far)
    return False


@dramatiq.actor(
    max_retries=5,
    min_backoff=5000,  # 5 seconds
    max_backoff=120000,  # 2 minutes
    retry_when=should_retry,
    queue_name="telegram_invites"
)
def process_invite_request(request_id: str) -> None:
    """
    Execute InviteLifecycleController.process_step for one request.

    Args:
        request_id: InviteRequest.request_id
    """
    # Lazy imports to avoid circular dependencies and import-time side effects
    from app.services.container import get_container
    from app.services.monitoring import set_processing_context

    set_processing_context(request_id, actor="invite_worker")

    outcome = get_container().controller.process_step(request_id)
    logger.info("invite_step_finished", request_id=request_id, outcome=outcome.value)
