"""Pytest configuration and fixtures."""

import logging
from typing import Generator, List

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ormkit.api.deps import RepoDep, fetch_or_404
from ormkit.db.base import Base
from ormkit.db.repo import Repo
from ormkit.db.session import get_db
from support import TEST_PREFIX, Widget

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def advisory_lock_calls() -> List[int]:
    """Keys passed to pg_advisory_xact_lock during the test."""
    return []


@pytest.fixture(scope="function")
def db_engine(advisory_lock_calls):
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def prepare_connection(dbapi_connection, connection_record):
        dbapi_connection.execute(f"ATTACH DATABASE ':memory:' AS {TEST_PREFIX}")
        dbapi_connection.create_function("pg_advisory_xact_lock", 1, advisory_lock_calls.append)

    Base.metadata.create_all(bind=engine)
    with engine.begin() as connection:
        connection = connection.execution_options(schema_translate_map={None: TEST_PREFIX})
        Base.metadata.create_all(bind=connection)

    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db_session: Session) -> Repo:
    return Repo(db_session)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client for a small app using the repo dependencies."""
    app = FastAPI()

    @app.get("/widgets/{widget_id}")
    def get_widget(widget_id: str, repo: RepoDep):
        widget = fetch_or_404(repo, Widget, widget_id)
        return {"id": str(widget.id), "name": widget.name}

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back after a test reconfigures it."""
    root_logger = logging.getLogger()
    handlers, level = list(root_logger.handlers), root_logger.level
    yield root_logger
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
