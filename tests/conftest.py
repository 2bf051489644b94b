# tests/conftest.py

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.database import ensure_schema, get_session
from app.main import app


@pytest.fixture()
def engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine) -> Session:
    """Session on a database that already has the full schema."""
    ensure_schema(engine, 3)
    with Session(engine) as session:
        yield session


@pytest.fixture()
def test_client(engine) -> TestClient:
    """
    FastAPI TestClient whose request sessions point at the in-memory engine.
    Tables are not created up front; the upload route does that itself.
    """

    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
