"""Cross-origin policy for the browser client of the auth API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from tickit.core.logger import REQUEST_ID_HEADER

ALLOWED_HEADERS = ("Authorization", "Content-Type", REQUEST_ID_HEADER)


def parse_origins(raw: str | None) -> list[str]:
    """Split a comma-separated ``CORS_ORIGINS`` value; ``[]`` means any origin."""
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return [] if origins == ["*"] else origins


def init_app(app: Flask) -> None:
    """Apply ``CORS_ORIGINS`` / ``CORS_MAX_AGE`` to every route of the app.

    The refresh token travels in a cookie, so credentials are only allowed for
    an explicit origin list. With a wildcard the browser client still gets
    access tokens from ``/login`` but never sends the cookie to ``/refresh``.
    """
    origins = parse_origins(app.config.get("CORS_ORIGINS"))
    prefix = str(app.config.get("API_BASE_PREFIX", "")).rstrip("/")

    CORS(
        app,
        resources={rf"{prefix}/*": {"origins": origins or "*"}},
        supports_credentials=bool(origins),
        allow_headers=list(ALLOWED_HEADERS),
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
