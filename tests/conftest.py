"""
Shared fixtures: in-memory stores for both backends and an API client wired
to them through dependency overrides.
"""
import os

# Single test client IP; keep the app-level limiter out of the way
os.environ.setdefault("REWARDHUB_RATE_LIMIT_REQUESTS", "100000")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from rewardhub.config import Settings, get_settings
from rewardhub.main import app
from rewardhub.store import get_store
from rewardhub.store.redis_store import RedisStore
from rewardhub.store.sql_store import SqlStore

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def sql_store():
    """SqlStore over a fresh in-memory SQLite database."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = SqlStore(engine)
    yield store
    store.close()


@pytest.fixture
def redis_store():
    """RedisStore over an isolated fakeredis server."""
    client = fakeredis.FakeRedis(decode_responses=True)
    store = RedisStore(client, namespace="test")
    yield store
    client.flushall()
    store.close()


@pytest.fixture(params=["sql", "redis"])
def store(request):
    """Each test using this runs once per backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def dev_settings():
    return Settings(environment="development", admin_token="", new_relic_license_key="")


@pytest.fixture
def client(sql_store, dev_settings):
    """API client backed by SQLite with admin writes open."""
    app.dependency_overrides[get_store] = lambda: sql_store
    app.dependency_overrides[get_settings] = lambda: dev_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
