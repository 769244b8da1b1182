"""
Shared fixtures: in-memory SQLite session and an API client bound to it.
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "webtwin-test-logs"))
os.environ.setdefault("ENABLE_LLM_INSIGHTS", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from webtwin.models.base import Base, get_db
import webtwin.models  # noqa: F401
from webtwin.services.event_store import EventStore


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store(db_session):
    return EventStore(db_session)


@pytest.fixture
def app(db_session):
    from webtwin.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
