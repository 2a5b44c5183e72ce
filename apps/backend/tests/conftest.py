"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time; keep tests off real services
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["SEED_DEMO_DATA"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadcrm.main import create_app
from leadcrm.models import Base
from leadcrm.models.db import get_db
from leadcrm.services.chat_relay import get_session_factory
from leadcrm.services.openai_service import get_completion_source
from leadcrm.services.state_service import get_history_cache


class FakeCompletions:
    """Scripted completion source; optionally fails before yielding chunk ``fail_at``."""

    def __init__(self, chunks=("Hello", ", ", "world", "!"), fail_at=None, on_start=None):
        self.chunks = list(chunks)
        self.fail_at = fail_at
        self.on_start = on_start
        self.calls = []

    async def stream(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.on_start:
            self.on_start()
        for i, chunk in enumerate(self.chunks):
            if i == self.fail_at:
                raise ConnectionError("upstream dropped the connection")
            yield chunk
        if self.fail_at is not None and self.fail_at >= len(self.chunks):
            raise ConnectionError("upstream dropped the connection")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def app(session_factory, completions):
    app = create_app(use_lifespan=False)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_completion_source] = lambda: completions
    app.dependency_overrides[get_history_cache] = lambda: None
    return app


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def lead_payload():
    return {
        "name": "A",
        "email": "a@x.com",
        "phone": "123",
        "programInterest": "1-Crore Club",
    }


@pytest.fixture
def make_lead(client, lead_payload):
    def _make(**overrides):
        response = client.post("/api/leads", json={**lead_payload, **overrides})
        assert response.status_code == 201, response.text
        return response.json()
    return _make
