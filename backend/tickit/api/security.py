"""Per-request bearer-token authentication.

Every request runs through :class:`AuthenticationFilter` before its view. The
filter walks a small state machine::

    UNAUTHENTICATED --Bearer header--> TOKEN_PRESENT --subject+user+valid--> AUTHENTICATED
                                             |
                                             +--any failure--> REJECTED (401, pipeline stops)

After the walk, a request that is not AUTHENTICATED may only reach endpoints on
the ``AUTH_PUBLIC_ENDPOINTS`` allow-list.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable

from flask import Flask, Response, current_app, g, request

from tickit.core.errors import error_body, error_response
from tickit.services._shared.errors import TokenError, TokenMalformedError
from tickit.services.auth.dto import PrincipalOut
from tickit.services.auth.service import AuthService

log = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

MALFORMED_TOKEN_MESSAGE = "Invalid or expired access token. Please refresh."
EXPIRED_TOKEN_MESSAGE = "Access token expired. Please refresh."
AUTH_REQUIRED_MESSAGE = "Authentication required"


class AuthState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_PRESENT = "token_present"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


def _unauthorized(message: str, code: str) -> Response:
    return error_response(error_body(status=401, code=code, message=message))


def current_principal() -> PrincipalOut | None:
    """Return the principal authenticated for this request, if any."""
    return g.get("principal")


def bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


class AuthenticationFilter:
    """
    Flask ``before_request`` hook that authenticates bearer tokens.

    :param service_factory: Builds the :class:`AuthService` used to resolve
        principals; defaults to the application's wiring.
    """

    def __init__(self, service_factory: Callable[[], AuthService] | None = None) -> None:
        self._service_factory = service_factory

    def init_app(self, app: Flask) -> None:
        app.before_request(self)
        app.extensions["authentication_filter"] = self

    def _service(self) -> AuthService:
        if self._service_factory is not None:
            return self._service_factory()
        from tickit.api.deps import auth_service

        return auth_service()

    def _is_public(self) -> bool:
        public = current_app.config.get("AUTH_PUBLIC_ENDPOINTS", ())
        return request.endpoint in public

    def authenticate(self) -> tuple[AuthState, Response | None]:
        """Run the state machine for the current request."""
        g.pop("principal", None)
        g.auth_state = AuthState.UNAUTHENTICATED

        token = bearer_token(request.headers.get("Authorization"))
        if token is None:
            return AuthState.UNAUTHENTICATED, None

        g.auth_state = AuthState.TOKEN_PRESENT
        try:
            principal = self._service().load_principal(token)
        except TokenMalformedError:
            log.info("Bearer token rejected: malformed", extra={"auth_state": "rejected"})
            return AuthState.REJECTED, _unauthorized(MALFORMED_TOKEN_MESSAGE, "invalid_token")
        except TokenError:
            log.info(
                "Bearer token rejected: expired or unknown subject",
                extra={"auth_state": "rejected"},
            )
            return AuthState.REJECTED, _unauthorized(EXPIRED_TOKEN_MESSAGE, "token_expired")

        g.principal = principal
        return AuthState.AUTHENTICATED, None

    def __call__(self) -> Response | None:
        # Preflight and unrouted requests are answered by CORS / the 404 handler
        if request.method == "OPTIONS" or request.endpoint is None:
            return None

        state, rejection = self.authenticate()
        g.auth_state = state
        if rejection is not None:
            return rejection

        if state is not AuthState.AUTHENTICATED and not self._is_public():
            log.info(
                "Unauthenticated request to protected endpoint",
                extra={"endpoint": request.endpoint, "auth_state": state.value},
            )
            return _unauthorized(AUTH_REQUIRED_MESSAGE, "unauthorized")
        return None
