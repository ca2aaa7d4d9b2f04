"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database. Services commit for real;
the database is thrown away with the engine at the end of the test.
"""

from datetime import datetime
from typing import Callable

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from probook.core.enums import NotificationChannel
from probook.database import Base
import probook.models  # noqa: F401
from probook.notifications.providers import ProviderRegistry
from tests.factories import FIXED_NOW, FakeChannelProvider


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def email_provider() -> FakeChannelProvider:
    return FakeChannelProvider("fake-email")


@pytest.fixture
def whatsapp_provider() -> FakeChannelProvider:
    return FakeChannelProvider("fake-whatsapp")


@pytest.fixture
def push_provider() -> FakeChannelProvider:
    return FakeChannelProvider("fake-push")


@pytest.fixture
def registry(email_provider, whatsapp_provider, push_provider) -> ProviderRegistry:
    return ProviderRegistry(
        {
            NotificationChannel.EMAIL: email_provider,
            NotificationChannel.WHATSAPP: whatsapp_provider,
            NotificationChannel.PUSH: push_provider,
        }
    )
