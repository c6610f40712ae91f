"""
Pytest configuration for QuizGuard tests
"""
import os

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ.setdefault("MAX_ALLOWED_VIOLATIONS", "0")
os.environ.setdefault("WARNING_THRESHOLD", "1")

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope='function')
def tables():
    """Create all tables on the in-memory database, drop them afterwards"""
    from quizguard.core.database import Base, engine, create_db_and_tables

    create_db_and_tables()
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope='function')
def db(tables):
    from quizguard.core.database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope='function')
def monitor_registry():
    """Isolated registry so service tests never touch the application's monitors"""
    from quizguard.services.monitor_registry import MonitorRegistry

    registry = MonitorRegistry()
    yield registry
    registry.close_all()


@pytest.fixture(autouse=True)
def reset_app_registry():
    yield
    from quizguard.services.monitor_registry import registry

    registry.close_all()


@pytest.fixture(scope='function')
def client(tables):
    """FastAPI test client"""
    from quizguard.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def host():
    from quizguard.proctoring import HostEnvironment

    return HostEnvironment.create()
