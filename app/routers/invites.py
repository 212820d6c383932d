"""
Invite Router
Client request endpoint, task-queue worker endpoint and status polling
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from fastapi.concurrency import run_in_threadpool

from app.models.invite_request import InviteStatus
from app.models.schemas import InviteCreateRequest, InviteCreateResponse, WorkerStepRequest
from app.middleware import get_correlation_id
from app.routers.dependencies import get_services
from app.services.container import ServiceContainer
from app.services.errors import InviteValidationError
from app.services.invite_lifecycle import StepOutcome
from app.services.monitoring import set_processing_context
from app.services.task_scheduler import SchedulingError

logger = structlog.get_logger()

router = APIRouter(prefix="/v1/invite", tags=["invite"])

# Plain-text acknowledgements for the task queue
STEP_ACKS = {
    StepOutcome.DONE: "ok",
    StepOutcome.ALREADY_DONE: "ok",
    StepOutcome.MISSING: "ok",
    StepOutcome.RETRY_SCHEDULED: "retry scheduled",
    StepOutcome.FAILED: "failed",
    StepOutcome.IN_FLIGHT: "in flight",
}


@router.post("/request")
def create_invite_request(
    payload: InviteCreateRequest,
    services: ServiceContainer = Depends(get_services)
):
    """
    Queue a new invite request and return immediately.

    Returns:
        {"ok": true, "accepted": true, "status": "queued", "requestId": ...}

    Raises:
        400: userId missing
        503: task queue unavailable
    """
    try:
        request_id = services.controller.create(payload.user_id, payload.transaction_id)
    except InviteValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SchedulingError as e:
        logger.error("invite_request_enqueue_failed", error=str(e))
        raise HTTPException(status_code=503, detail="Task queue unavailable")

    return InviteCreateResponse(request_id=request_id).model_dump(by_alias=True)


@router.post("/worker", response_class=PlainTextResponse)
async def run_worker_step(
    request: Request,
    services: ServiceContainer = Depends(get_services)
):
    """
    Worker step endpoint for HTTP task queues (Cloud Tasks style).

    Trusted only when the queue's header is present. Answers 200 for
    every stored outcome; retries are scheduled by the controller. A
    500 is returned only when rescheduling itself failed, so the queue
    redelivers.
    """
    if not request.headers.get(services.settings.worker_trust_header):
        logger.warning("worker_step_forbidden")
        return PlainTextResponse("Forbidden", status_code=403)

    try:
        step = WorkerStepRequest.model_validate(await request.json())
    except ValueError:
        return PlainTextResponse("Missing requestId", status_code=400)

    if not step.request_id:
        return PlainTextResponse("Missing requestId", status_code=400)

    set_processing_context(step.request_id, actor="worker_endpoint", correlation_id=get_correlation_id())

    try:
        outcome = await run_in_threadpool(services.controller.process_step, step.request_id)
    except SchedulingError:
        return PlainTextResponse("reschedule failed", status_code=500)

    return PlainTextResponse(STEP_ACKS[outcome])


@router.get("")
async def list_invite_requests(
    status: Optional[str] = Query(None, description="Filter by status (QUEUED, PROCESSING, DONE, FAILED)"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of requests to return"),
    services: ServiceContainer = Depends(get_services)
):
    """
    List recent invite requests with a per-status breakdown.
    """
    if status is not None:
        status = status.upper()
        if status not in {s.value for s in InviteStatus}:
            raise HTTPException(status_code=400, detail=f"Unknown status: {status}")

    rows = services.store.list(status=status, limit=limit)
    counts = services.store.count_by_status()

    logger.info("invite_requests_listed", returned=len(rows), filter=status)

    return {
        "by_status": counts,
        "requests": [row.to_dict() for row in rows],
    }


@router.get("/{request_id}")
async def get_invite_request(
    request_id: str,
    services: ServiceContainer = Depends(get_services)
):
    """
    Stored state of one invite request (clients poll this).

    Raises:
        404: Request not found
    """
    row = services.store.get(request_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Invite request not found")
    return row.to_dict()
