"""Registration, login, refresh and logout endpoints."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, g, request, url_for

from tickit.api.deps import (
    auth_service,
    json_response,
    log_activity,
    message_response,
    registration_service,
    timing,
)
from tickit.core.errors import BadRequest
from tickit.core.extensions import limiter
from tickit.schemas import (
    AccessTokenSchema,
    LoginResponseSchema,
    LoginSchema,
    RegisterSchema,
    VerifyOtpSchema,
)
from tickit.services.auth.dto import LoginIn, RefreshIn
from tickit.services.registration.dto import RegistrationIn, RegistrationVerifyIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
verify_otp_schema = VerifyOtpSchema()
login_schema = LoginSchema()
login_response_schema = LoginResponseSchema()
access_token_schema = AccessTokenSchema()

LOGGED_OUT_MESSAGE = "you have logged out. Pls login"


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _cookie_name() -> str:
    return str(current_app.config.get("REFRESH_COOKIE_NAME", "refreshToken"))


def _set_refresh_cookie(response: Response, token: str, *, max_age: int) -> None:
    """Attach (or clear, with ``max_age=0``) the HttpOnly refresh cookie."""

    cfg = current_app.config
    response.set_cookie(
        _cookie_name(),
        token,
        max_age=max_age,
        path=url_for("auth.refresh"),
        secure=bool(cfg.get("REFRESH_COOKIE_SECURE", False)),
        httponly=True,
        samesite=cfg.get("REFRESH_COOKIE_SAMESITE", "Lax"),
    )


def _refresh_max_age() -> int:
    expires = current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]
    return int(expires.total_seconds())


@bp.post("/register")
@timing
def register():
    """Validate a sign-up request and email an OTP."""

    data = register_schema.load(request.get_json(silent=True) or {})
    registration_service().request_registration(RegistrationIn(**data))
    return message_response("OTP sent to your email. Please verify.")


@bp.post("/verify-otp")
@timing
def verify_otp():
    """Confirm the registration OTP and create the account."""

    data = verify_otp_schema.load(request.get_json(silent=True) or {})
    registration_service().verify_registration(RegistrationVerifyIn(**data))
    return message_response("Email verified and user registered successfully.")


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials, return an access token and set the refresh cookie."""

    data = login_schema.load(request.get_json(silent=True) or {})
    pair = auth_service().login(LoginIn(**data))
    response = json_response(login_response_schema.dump(pair))
    _set_refresh_cookie(response, pair.refresh_token, max_age=_refresh_max_age())
    return response


@bp.post("/refresh")
@log_activity("Refreshed Token")
@timing
def refresh():
    """Rotate the refresh cookie and issue a new access token."""

    token = request.cookies.get(_cookie_name())
    if not token:
        raise BadRequest(LOGGED_OUT_MESSAGE, code="missing_refresh_token")
    pair = auth_service().refresh(RefreshIn(refresh_token=token))
    g.audit_username = pair.username
    response = json_response(access_token_schema.dump(pair))
    _set_refresh_cookie(response, pair.refresh_token, max_age=_refresh_max_age())
    return response


@bp.post("/log")
@log_activity("Logged Out")
@timing
def logout():
    """Clear the refresh cookie. Outstanding access tokens expire on their own."""

    response = message_response("Logged out successfully")
    _set_refresh_cookie(response, "", max_age=0)
    return response
