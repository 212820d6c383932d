"""
Service Wiring
Builds the controller and its collaborators once per process
"""

from typing import Optional

from app.config import Settings, settings as default_settings
from app.database import get_session_factory
from app.services.invite_index import InviteIndex
from app.services.invite_lifecycle import InviteLifecycleController
from app.services.notification_replay import NotificationReplayService
from app.services.redemption import RedemptionHandler
from app.services.request_store import RequestStore
from app.services.task_scheduler import DramatiqTaskScheduler
from app.services.telegram_client import TelegramInviteClient
from app.services.webengage_client import WebEngageNotifier


class ServiceContainer:
    """Holds the shared service graph for the API process and workers."""

    def __init__(
        self,
        settings: Settings,
        session_factory,
        issuer=None,
        scheduler=None,
        notifier=None
    ):
        self.settings = settings
        self.store = RequestStore(session_factory)
        self.index = InviteIndex(session_factory)
        self.issuer = issuer or TelegramInviteClient(settings)
        self.scheduler = scheduler or DramatiqTaskScheduler()
        self.notifier = notifier or WebEngageNotifier(settings)

        self.controller = InviteLifecycleController(
            store=self.store,
            index=self.index,
            issuer=self.issuer,
            scheduler=self.scheduler,
            notifier=self.notifier,
            settings=settings
        )
        self.redemption = RedemptionHandler(self.store, self.index, self.notifier, settings)
        self.replay = NotificationReplayService(self.store, self.notifier, settings)


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Lazily build the process-wide container.

    Raises:
        RuntimeError: DATABASE_URL not configured
    """
    global _container
    if _container is None:
        session_factory = get_session_factory()
        if session_factory is None:
            raise RuntimeError("DATABASE_URL not configured")
        _container = ServiceContainer(default_settings, session_factory)
    return _container


def set_container(container: Optional[ServiceContainer]) -> None:
    """Replace the process-wide container (tests)."""
    global _container
    _container = container
