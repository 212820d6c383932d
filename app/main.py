"""
Telegram Invite Broker - Main Application
FastAPI entry point for invite requests, the task-queue worker endpoint
and the Telegram webhook
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
import structlog

from app.config import settings
from app.database import init_db
from app.middleware import CorrelationIdMiddleware
from app.routers.invites import router as invites_router
from app.routers.telegram_webhook import router as telegram_webhook_router
from app.routers.admin import router as admin_router
from app.scheduler import start_scheduler, stop_scheduler
from app.services.monitoring import setup_logging, init_sentry

setup_logging()
logger = structlog.get_logger()

_state = {"scheduler": None}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""
    logger.info("startup", environment=settings.environment)

    init_sentry(settings)
    init_db()
    logger.info("database_initialized")

    _state["scheduler"] = start_scheduler(settings)

    yield

    logger.info("shutdown")
    stop_scheduler(_state["scheduler"])


# FastAPI App
app = FastAPI(
    title="Telegram Invite Broker",
    description="Issues single-use Telegram invite links asynchronously and tracks redemption",
    version="1.0.0",
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIdMiddleware)

# Register routers
app.include_router(invites_router)
app.include_router(telegram_webhook_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root Endpoint"""
    return {
        "message": "Telegram Invite Broker API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """
    Health Check Endpoint
    """
    scheduler = _state["scheduler"]
    health_status = {
        "status": "healthy",
        "environment": settings.environment,
        "services": {
            "api": "running",
            "scheduler": "running" if scheduler is not None and scheduler.running else "stopped"
        }
    }

    if settings.database_url:
        health_status["services"]["database"] = "configured"

    if settings.redis_url:
        health_status["services"]["queue"] = "redis"

    if settings.telegram_bot_token and settings.telegram_channel_id:
        health_status["services"]["telegram"] = "configured"

    if settings.webengage_license_code and settings.webengage_api_key:
        health_status["services"]["webengage"] = "configured"

    return JSONResponse(
        content=health_status,
        status_code=200
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8080,
        reload=settings.environment == "development"
    )
