"""
Admin Router
Operational triggers
"""

import structlog
from fastapi import APIRouter, Depends

from app.routers.dependencies import get_services
from app.services.container import ServiceContainer

logger = structlog.get_logger()

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.post("/notifications/replay")
def trigger_notification_replay(services: ServiceContainer = Depends(get_services)):
    """
    Re-send unconfirmed link-created events now instead of waiting for
    the scheduled run.
    """
    result = services.replay.run()
    logger.info("manual_notification_replay", **result)
    return {"status": "completed", "result": result}
