"""Pytest fixtures building an isolated application per test.

Each test gets its own application instance bound to a fresh in-memory SQLite
database, an in-process ephemeral store and an in-memory mail outbox, so state
never leaks between cases.
"""

from __future__ import annotations

import os

import pytest

from tickit.core.config import TestingConfig
from tickit.core.extensions import EMAIL_SENDER_KEY, EPHEMERAL_STORE_KEY
from tickit.core.extensions import db as _db  # Flask-SQLAlchemy instance
from tickit.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps mail and OTP state in process.
    - Disables rate limiting (re-enabled explicitly where tested).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    USE_PROXYFIX = False
    CORS_ORIGINS = "http://localhost:5173"


@pytest.fixture()
def app():
    """Create a Flask application with its schema and an active app context.

    Yields
    ------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    application = create_app(TestConfig, instance_relative_config=False)
    ctx = application.app_context()
    ctx.push()
    _db.create_all()
    try:
        yield application
    finally:
        _db.session.remove()
        _db.drop_all()
        ctx.pop()


@pytest.fixture()
def db(app):
    """Return the database extension bound to the testing application."""
    return _db


@pytest.fixture()
def session(db):
    """Return the Flask-scoped session used by repositories and units of work."""
    return db.session


@pytest.fixture()
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def outbox(app):
    """In-memory email sender wired into the application."""
    sender = app.extensions[EMAIL_SENDER_KEY]
    sender.clear()
    return sender


@pytest.fixture()
def ephemeral_store(app):
    """Ephemeral store wired into the application."""
    return app.extensions[EPHEMERAL_STORE_KEY]


@pytest.fixture()
def freeze_time():
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01"):
    ...         ...
    """
    from freezegun import freeze_time as _freeze_time

    def _factory(target=None, **kwargs):
        return _freeze_time(target or "2024-01-01 12:00:00", **kwargs)

    return _factory


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the Flask-scoped session ---------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test uses the database."""
    from tests.factories import SQLAlchemySession

    if "app" not in request.fixturenames:
        SQLAlchemySession.set(None)
        yield
        return
    session = request.getfixturevalue("session")
    SQLAlchemySession.set(session)
    yield
    SQLAlchemySession.set(None)
