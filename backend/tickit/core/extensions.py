"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import logging
import secrets
from typing import cast

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from tickit.services._shared.ports import EmailSender, EphemeralStore, TokenService

log = logging.getLogger(__name__)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

EPHEMERAL_STORE_KEY = "ephemeral_store"
EMAIL_SENDER_KEY = "email_sender"
TOKEN_SERVICE_KEY = "token_service"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT, rate limiting and adapters.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`tickit.models` package to ensure SQLAlchemy metadata is ready for
        migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from tickit import models as _models  # noqa: F401

    migrate.init_app(app, db)

    _ensure_jwt_secret(app)
    _ensure_redis_url(app)
    jwt.init_app(app)
    limiter.init_app(app)

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        app.extensions.pop("redis_client", None)
    else:
        redis_client = redis.Redis.from_url(redis_url, decode_responses=True)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client

    init_ports(app)


def _ensure_redis_url(app: Flask) -> None:
    """Refuse to start without Redis where ``REDIS_REQUIRED`` is set.

    OTPs, pending registrations and login rate limits must be shared by every
    worker there, so the limiter storage follows ``REDIS_URL`` unless it was
    pointed elsewhere explicitly.
    """
    if not app.config.get("REDIS_REQUIRED"):
        return
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        raise RuntimeError("REDIS_URL must be configured for this environment.")
    if str(app.config.get("RATELIMIT_STORAGE_URI") or "memory://").startswith("memory://"):
        app.config["RATELIMIT_STORAGE_URI"] = redis_url


def _ensure_jwt_secret(app: Flask) -> None:
    """Fill ``JWT_SECRET_KEY`` once per process when it is not configured.

    The generated key lives only in memory: tokens do not survive a restart and
    are not accepted by other instances. Configurations flagged with
    ``JWT_SECRET_REQUIRED`` refuse to start instead.
    """
    if app.config.get("JWT_SECRET_KEY"):
        return
    if app.config.get("JWT_SECRET_REQUIRED"):
        raise RuntimeError("JWT_SECRET_KEY must be configured for this environment.")
    app.config["JWT_SECRET_KEY"] = secrets.token_urlsafe(64)
    log.warning("JWT_SECRET_KEY not configured; generated an ephemeral per-process signing key.")


def init_ports(app: Flask) -> None:
    """Build the adapters behind the service ports and park them on ``app.extensions``.

    - Ephemeral store: Redis when a client is available, else in-process TTL map.
    - Email sender: SMTP or in-memory outbox according to ``MAIL_BACKEND``.
    - Token service: Flask-JWT-Extended adapter.
    """
    from tickit.infra.jwt.flask_jwt_token_service import FlaskJWTTokenService
    from tickit.infra.mail.smtp_email_sender import SmtpEmailSender
    from tickit.infra.redis.redis_ephemeral_store import RedisEphemeralStore
    from tickit.services._shared.ports import InMemoryEmailSender, InMemoryEphemeralStore

    client = app.extensions.get("redis_client")
    store: EphemeralStore = (
        RedisEphemeralStore(client) if client is not None else InMemoryEphemeralStore()
    )
    app.extensions[EPHEMERAL_STORE_KEY] = store

    backend = str(app.config.get("MAIL_BACKEND", "smtp")).strip().lower()
    sender: EmailSender
    if backend == "memory":
        sender = InMemoryEmailSender()
    elif backend == "smtp":
        sender = SmtpEmailSender.from_config(app.config)
    else:
        raise RuntimeError(f"Unknown MAIL_BACKEND {backend!r} (expected 'smtp' or 'memory').")
    app.extensions[EMAIL_SENDER_KEY] = sender

    app.extensions[TOKEN_SERVICE_KEY] = FlaskJWTTokenService()


def get_ephemeral_store() -> EphemeralStore:
    """Return the ephemeral store bound to the current application."""
    return cast(EphemeralStore, current_app.extensions[EPHEMERAL_STORE_KEY])


def get_email_sender() -> EmailSender:
    """Return the email sender bound to the current application."""
    return cast(EmailSender, current_app.extensions[EMAIL_SENDER_KEY])


def get_token_service() -> TokenService:
    """Return the token service bound to the current application."""
    return cast(TokenService, current_app.extensions[TOKEN_SERVICE_KEY])
