"""JSON logging for the auth API: request correlation, principal tagging, redaction."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

REDACTED = "REDACTED"
# Substrings of extra keys whose values never reach the log stream
SENSITIVE_KEY_PARTS = ("password", "otp", "token", "secret", "authorization", "cookie")

_RESERVED = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "request_id", "principal"}


def is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


class JSONFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    Anything passed through ``extra=`` becomes a top-level key; keys that look
    like credentials (``password``, ``otp``, ``token`` ...) are masked.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        principal = getattr(record, "principal", None)
        if principal:
            payload["principal"] = principal
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_"):
                continue
            payload[key] = REDACTED if is_sensitive(key) else value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    """Stamp records with the request id and the authenticated username."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            record.request_id = None
            record.principal = None
            return True
        record.request_id = ensure_request_id()
        principal = g.get("principal")
        record.principal = getattr(principal, "username", None)
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary.

    An inbound ``X-Request-ID`` (or ``X-Correlation-ID``) is reused so a
    client can follow one call across services.
    """

    if not has_request_context():
        return str(uuid4())
    current = g.get("request_id")
    if current:
        return current
    incoming = next(
        (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)), None
    )
    g.request_id = incoming or str(uuid4())
    return g.request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Send root logging to stdout as JSON at ``level``."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestContextFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed a request id per request and echo it on every response."""

    app.logger.addFilter(RequestContextFilter())

    @app.before_request
    def _seed_request_id() -> None:
        # ``g`` outlives a request when the app context was pushed beforehand
        g.pop("request_id", None)
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "RequestContextFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "is_sensitive",
]
