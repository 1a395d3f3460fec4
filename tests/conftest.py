"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from activity_ledger.infrastructure.db.session import Base
from activity_ledger.infrastructure.db import models  # noqa: F401
from activity_ledger.infrastructure.db.models import Mission
from activity_ledger.application.activity_reports import CreateReportUseCase


@pytest.fixture
def db_engine():
    """In-memory SQLite shared across threads (API tests run routes in a threadpool)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def owner_id():
    """Owner of the reports under test"""
    return 1


@pytest.fixture
def other_user_id():
    return 2


@pytest.fixture
def missions(db_session):
    """Two missions: ACME Platform, Globex Audit"""
    rows = [Mission(name="ACME Platform"), Mission(name="Globex Audit")]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture
def report(db_session, owner_id):
    """Draft report for March 2024"""
    return CreateReportUseCase(db_session).execute(
        owner_id=owner_id, month=3, year=2024, currency="EUR",
    )
