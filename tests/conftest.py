"""
Shared fixtures: in-memory SQLite and fake external collaborators.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.pop("REDIS_URL", None)
os.environ.pop("DATABASE_URL", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.database import Base
from app.models import InviteRequest, InviteLookup  # noqa: F401
from app.services.container import ServiceContainer, set_container
from app.services.invite_index import InviteIndex
from app.services.request_store import RequestStore

from tests.fakes import FakeIssuer, FakeNotifier, FakeScheduler


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="testing",
        telegram_bot_token="123:TEST",
        telegram_channel_id="-1001234567890",
        webengage_license_code="lic",
        webengage_api_key="key",
    )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return RequestStore(session_factory)


@pytest.fixture
def index(session_factory):
    return InviteIndex(session_factory)


@pytest.fixture
def issuer():
    return FakeIssuer("https://t.me/+AAAAissued")


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def container(settings, session_factory, issuer, scheduler, notifier):
    services = ServiceContainer(
        settings,
        session_factory,
        issuer=issuer,
        scheduler=scheduler,
        notifier=notifier,
    )
    set_container(services)
    yield services
    set_container(None)
