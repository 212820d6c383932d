"""
Invite Lifecycle Controller
Owns every status transition of an invite request

State machine:
- QUEUED -> PROCESSING (worker step claims the request, attempts + 1)
- PROCESSING -> QUEUED (rate limited / transient issuer failure, delayed reschedule)
- PROCESSING -> DONE (link issued, index entry written first)
- QUEUED/PROCESSING -> FAILED (attempt ceiling reached or fatal issuer error)

Worker steps arrive at-least-once and possibly concurrently. Every
transition is a conditional write on the status/attempts snapshot the
step read, so a duplicate step that lost the race does nothing.
"""

import enum
import math
from datetime import datetime, timedelta
from typing import Protocol

import structlog

from app.models.invite_request import InviteRequest, InviteStatus
from app.services.errors import (
    FatalIssuerError,
    InviteValidationError,
    RateLimitedError,
    TransientIssuerError,
)
from app.services.invite_index import InviteIndex
from app.services.request_store import RequestStore

logger = structlog.get_logger(__name__)


class InviteIssuer(Protocol):
    def create_invite_link(self, name: str) -> str: ...


class TaskScheduler(Protocol):
    def schedule(self, request_id: str, delay_seconds: int = 0) -> None: ...


class NotificationSink(Protocol):
    def send(self, user_id: str, event_name: str, event_data: dict) -> bool: ...


class StepOutcome(str, enum.Enum):
    """Result of one worker step, echoed back to the task queue."""
    DONE = "done"
    ALREADY_DONE = "already_done"
    MISSING = "missing"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"
    IN_FLIGHT = "in_flight"


def build_invite_name(
    owner_id: str,
    correlation_id: str,
    request_id: str,
    attempt: int,
    max_length: int
) -> str:
    """Deterministic, human-traceable invite link label."""
    return f"uid:{owner_id}|txn:{correlation_id}|rid:{request_id}|a:{attempt}"[:max_length]


class InviteLifecycleController:
    """
    Creates invite requests and runs worker steps against the issuer.

    Collaborators are injected; the controller never reads global
    configuration or opens connections itself.
    """

    def __init__(
        self,
        store: RequestStore,
        index: InviteIndex,
        issuer: InviteIssuer,
        scheduler: TaskScheduler,
        notifier: NotificationSink,
        settings
    ):
        self.store = store
        self.index = index
        self.issuer = issuer
        self.scheduler = scheduler
        self.notifier = notifier
        self.settings = settings
        self.logger = logger.bind(service="invite_lifecycle")

    # --- Client entry point ---

    def create(self, owner_id, correlation_id="") -> str:
        """
        Persist a QUEUED request and schedule its first worker step.

        Returns without waiting for the worker.

        Raises:
            InviteValidationError: owner_id missing or blank
        """
        if owner_id is None or not str(owner_id).strip():
            raise InviteValidationError("Missing userId")

        request = self.store.create(str(owner_id).strip(), str(correlation_id or "").strip())
        self.scheduler.schedule(request.request_id, 0)

        self.logger.info(
            "invite_request_queued",
            request_id=request.request_id,
            owner_id=request.owner_id,
            correlation_id=request.correlation_id
        )
        return request.request_id

    # --- Worker entry point ---

    def _lease_expired(self, request: InviteRequest) -> bool:
        if request.updated_at is None:
            return True
        lease = timedelta(seconds=self.settings.processing_lease_seconds)
        return datetime.utcnow() - request.updated_at >= lease

    def _lease_remaining(self, request: InviteRequest) -> int:
        elapsed = (datetime.utcnow() - request.updated_at).total_seconds() if request.updated_at else 0
        return max(int(math.ceil(self.settings.processing_lease_seconds - elapsed)), 1)

    def _check_back(self, request_id: str, delay: int, log) -> StepOutcome:
        # The step holding the claim may die; a later step re-claims after the lease
        try:
            self.scheduler.schedule(request_id, delay)
        except Exception as e:
            log.error("invite_request_check_back_failed", delay=delay, error=str(e))
            raise
        log.info("invite_request_check_back_scheduled", delay=delay)
        return StepOutcome.IN_FLIGHT

    def _transient_delay(self, attempt: int) -> int:
        base = self.settings.default_retry_after_seconds
        return min(base * 2 ** max(attempt - 1, 0), self.settings.transient_backoff_max_seconds)

    def process_step(self, request_id: str) -> StepOutcome:
        """
        Run one issuance attempt for a request. Safe to call repeatedly.

        Issuer failures never escape: they become a delayed reschedule or
        a FAILED status. A step that finds the request claimed by another
        step schedules a check-back for when that claim's lease runs out.
        Only a failure to reach the task queue itself is raised, so the
        queue redelivers this step.
        """
        log = self.logger.bind(request_id=request_id)

        request = self.store.get(request_id)
        if request is None:
            log.warning("invite_request_not_found")
            return StepOutcome.MISSING

        status = InviteStatus(request.status)
        if status is InviteStatus.DONE:
            log.info("invite_request_already_done")
            return StepOutcome.ALREADY_DONE
        if status is InviteStatus.FAILED:
            log.info("invite_request_already_failed", attempts=request.attempts)
            return StepOutcome.FAILED
        if status is InviteStatus.PROCESSING and not self._lease_expired(request):
            log.info("invite_request_in_flight", attempts=request.attempts)
            return self._check_back(request_id, self._lease_remaining(request), log)

        next_attempts = request.attempts + 1
        if next_attempts > self.settings.max_attempts:
            self.store.mark_failed(request_id, f"max attempts exceeded ({self.settings.max_attempts})")
            log.error("invite_request_attempts_exhausted", attempts=request.attempts)
            return StepOutcome.FAILED

        if not self.store.claim(request_id, status.value, request.attempts, next_attempts):
            log.info("invite_request_claim_lost", expected_status=status.value, expected_attempts=request.attempts)
            return self._check_back(request_id, self.settings.processing_lease_seconds, log)

        log = log.bind(attempt=next_attempts)
        log.info("invite_request_processing", reclaimed=status is InviteStatus.PROCESSING)

        name = build_invite_name(
            request.owner_id,
            request.correlation_id,
            request_id,
            next_attempts,
            self.settings.invite_name_max_length
        )

        try:
            invite_link = self.issuer.create_invite_link(name)
        except RateLimitedError as e:
            retry_after = e.retry_after or self.settings.default_retry_after_seconds
            return self._retry_later(request_id, next_attempts, retry_after, str(e), log)
        except TransientIssuerError as e:
            return self._retry_later(request_id, next_attempts, self._transient_delay(next_attempts), str(e), log)
        except FatalIssuerError as e:
            self.store.mark_failed(request_id, str(e))
            log.error("invite_request_failed_fatal", error=str(e), status_code=e.status_code)
            return StepOutcome.FAILED
        except Exception as e:
            log.error("invite_issuer_unexpected_error", error=str(e), exception_type=type(e).__name__, exc_info=True)
            error = f"{type(e).__name__}: {e}"
            return self._retry_later(request_id, next_attempts, self._transient_delay(next_attempts), error, log)

        return self._complete(request, invite_link, log)

    def _retry_later(self, request_id: str, attempts: int, delay: int, error: str, log) -> StepOutcome:
        if attempts >= self.settings.max_attempts:
            self.store.mark_failed(request_id, f"max attempts exceeded ({self.settings.max_attempts}): {error}")
            log.error("invite_request_attempts_exhausted", error=error)
            return StepOutcome.FAILED

        if not self.store.requeue(request_id, attempts, delay, error):
            # Lease expired and another step re-claimed the request
            log.warning("invite_request_requeue_superseded", error=error)
            return self._check_back(request_id, self.settings.processing_lease_seconds, log)

        try:
            self.scheduler.schedule(request_id, delay)
        except Exception as e:
            log.error("invite_request_reschedule_failed", delay=delay, error=str(e))
            raise

        log.info("invite_request_retry_scheduled", delay=delay, error=error)
        return StepOutcome.RETRY_SCHEDULED

    def _complete(self, request: InviteRequest, invite_link: str, log) -> StepOutcome:
        # Index entry must exist before DONE is visible to the webhook path
        self.index.put(invite_link, request.request_id, request.owner_id, request.correlation_id)

        if not self.store.mark_done(request.request_id, invite_link):
            log.warning("invite_link_superseded")
            return StepOutcome.ALREADY_DONE

        log.info("invite_request_done")

        if not request.link_event_sent:
            sent = self.notifier.send(
                request.owner_id,
                self.settings.link_created_event,
                {
                    "transactionId": request.correlation_id,
                    "inviteLink": invite_link,
                }
            )
            if sent:
                self.store.latch_link_event(request.request_id)
            else:
                log.warning("link_event_not_delivered")

        return StepOutcome.DONE
