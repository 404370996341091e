"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Core fixtures
(frozen clock, in-memory store, recording notifier, fast hasher) let the
credential engine be exercised without Flask at all.
"""

from __future__ import annotations

import os
from datetime import timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from authsvc.core.config import TestingConfig
from authsvc.core.extensions import db as _db  # Flask-SQLAlchemy instance
from authsvc.factory import create_app  # application factory under test
from authsvc.services._shared.ports import (
    FrozenClock,
    InMemoryCredentialStore,
    RecordingNotifier,
)
from authsvc.services.credentials import (
    CredentialService,
    CredentialSettings,
    PasswordHasher,
    TokenCodec,
)

SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"
FAST_WORK_FACTOR = 1_000
PASSWORD = "Passw0rd!"


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps the SQL credential backend; Redis is covered with fakeredis.
    - Plain-HTTP cookies so the test client sends them back.
    """

    __test__ = False

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    TOKEN_SECRET_KEY = SIGNING_KEY
    CREDENTIAL_BACKEND = "sql"
    REDIS_URL = None
    COOKIE_SECURE = False
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing."""
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture
def factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield session


# -- Credential engine building blocks -----------------------------------------
@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def memory_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(work_factor=FAST_WORK_FACTOR, min_length=8)


@pytest.fixture
def settings() -> CredentialSettings:
    return CredentialSettings(
        secret_key=SIGNING_KEY,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=30),
        hash_work_factor=FAST_WORK_FACTOR,
    )


@pytest.fixture
def codec(settings, clock) -> TokenCodec:
    return TokenCodec(
        secret_key=settings.secret_key,
        access_ttl=settings.access_ttl,
        refresh_token_bytes=settings.refresh_token_bytes,
        clock=clock,
    )


@pytest.fixture
def credential_service(memory_store, settings, notifier, clock, hasher) -> CredentialService:
    return CredentialService(
        store=memory_store,
        settings=settings,
        notifier=notifier,
        clock=clock,
        hasher=hasher,
    )


@pytest.fixture
def account(memory_store, hasher):
    """An active account seeded in the in-memory store."""
    return memory_store.add_account(
        email="alice@example.com",
        password_hash=hasher.hash(PASSWORD),
        first_name="Alice",
    )
