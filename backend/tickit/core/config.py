"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints. Empty by default so the
        authentication routes are served at ``/register``, ``/login``, etc.
    APP_DISPLAY_NAME: str
        Product name used in outgoing emails.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str | None
        Shared HMAC key for access/refresh tokens. When unset a random key is
        generated once per process (development only).
    JWT_ACCESS_TOKEN_EXPIRES: timedelta
        Access token lifetime (one hour).
    JWT_REFRESH_TOKEN_EXPIRES: timedelta
        Refresh token lifetime (1440 minutes).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    APP_ENV: str
        Name of the environment the class configures (``development``,
        ``testing`` or ``production``).
    REDIS_URL: str | None
        Ephemeral store backend. When unset an in-process TTL store is used.
    REDIS_REQUIRED: bool
        Refuse to start without ``REDIS_URL`` (production).
    ALLOWED_EMAIL_DOMAINS: str
        Comma-separated list of email domains accepted for registration and
        password reset.
    REGISTRATION_OTP_TTL_MINUTES: int
        Lifetime of the registration OTP and the pending registration payload.
    PASSWORD_RESET_OTP_TTL_MINUTES: int
        Lifetime of a password-reset OTP record.
    REFRESH_COOKIE_NAME: str
        Name of the HTTP-only cookie carrying the refresh token.
    REFRESH_COOKIE_SECURE: bool
        Whether the refresh cookie is flagged ``Secure``.
    REFRESH_COOKIE_SAMESITE: str
        ``SameSite`` attribute of the refresh cookie.
    AUTH_PUBLIC_ENDPOINTS: tuple[str, ...]
        Endpoint names reachable without a bearer token.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter expression applied to ``/login``.
    MAIL_BACKEND: str
        ``"smtp"`` to deliver through :class:`SmtpEmailSender`, ``"memory"`` to
        keep messages in an in-process outbox.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    APP_ENV = "development"
    API_BASE_PREFIX = os.getenv("API_BASE_PREFIX", "")
    APP_DISPLAY_NAME = os.getenv("APP_DISPLAY_NAME", "TickIT")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or None
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=env_int("JWT_ACCESS_TOKEN_MINUTES", 60))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(minutes=env_int("JWT_REFRESH_TOKEN_MINUTES", 1440))
    JWT_TOKEN_LOCATION = ["headers"]

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Ephemeral store
    REDIS_URL = os.getenv("REDIS_URL") or None
    REDIS_REQUIRED = False

    # Registration / password reset
    ALLOWED_EMAIL_DOMAINS = os.getenv("ALLOWED_EMAIL_DOMAINS", "gmail.com,jadeglobal.com")
    REGISTRATION_OTP_TTL_MINUTES = env_int("REGISTRATION_OTP_TTL_MINUTES", 2)
    PASSWORD_RESET_OTP_TTL_MINUTES = env_int("PASSWORD_RESET_OTP_TTL_MINUTES", 2)

    # Refresh cookie
    REFRESH_COOKIE_NAME = "refreshToken"
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)
    REFRESH_COOKIE_SAMESITE = os.getenv("REFRESH_COOKIE_SAMESITE", "Lax")

    # Authentication filter
    AUTH_PUBLIC_ENDPOINTS = (
        "auth.register",
        "auth.verify_otp",
        "auth.login",
        "auth.refresh",
        "password_reset.verify_mail",
        "password_reset.verify_otp",
        "password_reset.change_password",
        "health.healthcheck",
        "static",
    )

    # Rate limiting (Flask-Limiter)
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI") or REDIS_URL or "memory://"
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")

    # Mail
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = env_int("MAIL_PORT", 587)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME") or None
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD") or None
    MAIL_USE_TLS = env_bool("MAIL_USE_TLS", True)
    MAIL_TIMEOUT_SECONDS = env_int("MAIL_TIMEOUT_SECONDS", 10)
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@tickit.local")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and keeps outgoing mail in memory unless
    ``MAIL_BACKEND`` says otherwise.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "memory")
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps mail and the ephemeral store in process; disables rate limiting.
    """

    APP_ENV = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    JWT_SECRET_KEY = "testing-secret-key-that-is-long-enough-for-hs256"
    REDIS_URL = None
    MAIL_BACKEND = "memory"
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and flags the refresh cookie
    ``Secure`` unless explicitly overridden. ``JWT_SECRET_KEY`` and ``REDIS_URL``
    are mandatory (see :func:`tickit.core.extensions.init_app`).
    """

    APP_ENV = "production"
    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", True)
    JWT_SECRET_REQUIRED = True
    REDIS_REQUIRED = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
