"""Shared fixtures: an in-memory SQLite database and an API client."""
import os

# Must be set before any hitstats module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["CREATE_SCHEMA"] = "false"
os.environ.pop("API_TOKEN", None)
os.environ.pop("LOG_LEVEL", None)

import pytest
from fastapi.testclient import TestClient

from hitstats.database import Base, SessionLocal, engine, init_db
from hitstats.main import app


@pytest.fixture
def db():
    """Fresh stats table for each test."""
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client
