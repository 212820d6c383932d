"""
API routers package
"""

from app.routers.invites import router as invites_router
from app.routers.telegram_webhook import router as telegram_webhook_router
from app.routers.admin import router as admin_router
