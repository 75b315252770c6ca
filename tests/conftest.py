"""
Shared test fixtures.

Tests run against a SQLite file so the poster can open its own
sessions (and threads their own connections) on the same
database the test inspects. Tables are created before and
dropped after every test.

SQLite allows one writer at a time, and a session that has read
holds its lock until it commits. post_event commits the test
session before handing an event to the poster so the two never
wait on each other.
"""

import os
from datetime import date

# Must be set before ledger_poster.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from ledger_poster.config import Settings
from ledger_poster.main import app
from ledger_poster.models.base import Base, build_engine, get_db, get_session_factory
from ledger_poster.services.chart import seed_default_chart
from ledger_poster.services.poster import TransactionalPoster


TEST_DATABASE_URL = "sqlite:///./test.db"

# Every document numbered in the tests is dated June 2025.
POSTING_DATE = date(2025, 6, 15)

engine = build_engine(TEST_DATABASE_URL)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def make_settings(**overrides) -> Settings:
    settings = Settings()
    settings.POSTING_MAX_ATTEMPTS = 10
    settings.POSTING_RETRY_BACKOFF_SECONDS = 0.01
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for seeding and assertions."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def chart(db_session):
    """The default chart of accounts, committed."""
    seed_default_chart(db_session)
    db_session.commit()


@pytest.fixture
def poster():
    return TransactionalPoster(
        TestSessionLocal,
        settings=make_settings(),
        today=lambda: POSTING_DATE,
    )


@pytest.fixture
def post_event(db_session, poster):
    """Post an event after releasing the test session's locks."""
    def post(event):
        db_session.commit()
        return poster.post(event)
    return post


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    Reads go through the test session; the poster behind the
    event endpoints gets the test session factory.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestSessionLocal
    yield TestClient(app)
    app.dependency_overrides.clear()
