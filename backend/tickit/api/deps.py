"""Shared API helpers: response shaping, service wiring and route decorators."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from tickit.core.extensions import get_email_sender, get_ephemeral_store, get_token_service
from tickit.services._shared.base import ServiceContext
from tickit.services._shared.policies.email import parse_domains
from tickit.services.activity.service import ActivityService
from tickit.services.auth.service import AuthService
from tickit.services.notifications.account_mails import AccountMails
from tickit.services.password_reset.dto import PasswordResetSettings
from tickit.services.password_reset.service import PasswordResetService
from tickit.services.registration.dto import RegistrationSettings
from tickit.services.registration.service import RegistrationService

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def message_response(message: str, *, status: int = 200) -> Response:
    """Return the ``{"message": ...}`` acknowledgement used by the auth routes."""

    return json_response({"message": message}, status=status)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


# --------------------------------------------------------------------------- #
# Service wiring
# --------------------------------------------------------------------------- #


def service_context() -> ServiceContext:
    """Build the request-scoped service context from ``flask.g``."""

    principal = g.get("principal")
    return ServiceContext(
        actor_id=principal.id if principal else None,
        actor_username=principal.username if principal else None,
        request_id=g.get("request_id"),
    )


def _allowed_domains() -> frozenset[str]:
    return parse_domains(current_app.config.get("ALLOWED_EMAIL_DOMAINS"))


def _minutes(key: str, default: int) -> timedelta:
    return timedelta(minutes=int(current_app.config.get(key, default)))


def account_mails() -> AccountMails:
    return AccountMails(
        get_email_sender(),
        app_name=str(current_app.config.get("APP_DISPLAY_NAME", "TickIT")),
    )


def auth_service() -> AuthService:
    return AuthService(tokens=get_token_service(), ctx=service_context())


def registration_service() -> RegistrationService:
    return RegistrationService(
        store=get_ephemeral_store(),
        mails=account_mails(),
        settings=RegistrationSettings(
            allowed_domains=_allowed_domains(),
            otp_ttl=_minutes("REGISTRATION_OTP_TTL_MINUTES", 2),
        ),
        ctx=service_context(),
    )


def password_reset_service() -> PasswordResetService:
    return PasswordResetService(
        mails=account_mails(),
        settings=PasswordResetSettings(
            allowed_domains=_allowed_domains(),
            otp_ttl=_minutes("PASSWORD_RESET_OTP_TTL_MINUTES", 2),
        ),
        ctx=service_context(),
    )


def activity_service() -> ActivityService:
    return ActivityService(ctx=service_context())


# --------------------------------------------------------------------------- #
# Audit trail
# --------------------------------------------------------------------------- #


def log_activity(action: str) -> Callable[[F], F]:
    """
    Record ``action`` in the activity log once the wrapped view succeeds.

    The actor is the authenticated principal, or the username a public view
    stores in ``g.audit_username`` (e.g. after a refresh). Nothing is written
    for error responses or when no actor is known.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            response = current_app.make_response(func(*args, **kwargs))
            if response.status_code >= 400:
                return response

            principal = g.get("principal")
            audit_username = g.pop("audit_username", None)
            username = principal.username if principal else audit_username
            if username:
                activity_service().record(action, username)
            else:
                log.debug("No actor for audited action", extra={"action": action})
            return response

        return wrapper  # type: ignore[return-value]

    return decorator
