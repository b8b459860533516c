# tickit/infra/jwt/flask_jwt_token_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from tickit.services._shared.errors import TokenMalformedError
from tickit.services._shared.ports import TokenService

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FlaskJWTTokenService(TokenService):
    """
    Adapter for Flask-JWT-Extended.

    Lifetimes, algorithm and signing key come from ``JWT_ACCESS_TOKEN_EXPIRES``,
    ``JWT_REFRESH_TOKEN_EXPIRES``, ``JWT_ALGORITHM`` and ``JWT_SECRET_KEY``.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def issue_access(self, subject: str) -> str:
        from flask_jwt_extended import create_access_token

        return cast(str, create_access_token(identity=subject))

    def issue_refresh(self, subject: str) -> str:
        from flask_jwt_extended import create_refresh_token

        return cast(str, create_refresh_token(identity=subject))

    def _decode(self, token: str, *, allow_expired: bool) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        return cast(dict[str, Any], decode_token(token, allow_expired=allow_expired))

    def extract_subject(self, token: str) -> str:
        try:
            claims = self._decode(token, allow_expired=True)
        except (PyJWTError, JWTExtendedException) as exc:
            raise TokenMalformedError() from exc
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenMalformedError()
        return subject

    def is_valid(
        self, token: str, expected_subject: str, *, token_type: str | None = None
    ) -> bool:
        try:
            claims = self._decode(token, allow_expired=False)
        except (PyJWTError, JWTExtendedException) as exc:
            log.debug("Token rejected: %s", type(exc).__name__)
            return False
        if claims.get("sub") != expected_subject:
            return False
        if token_type is not None and claims.get("type") != token_type:
            return False
        return True
