# tickit/services/auth/service.py
from __future__ import annotations

import logging

from tickit.models.user import User
from tickit.repositories.user import UserRepository
from tickit.services._shared.base import BaseService, ServiceContext
from tickit.services._shared.errors import (
    InvalidCredentialsError,
    NotFoundError,
    TokenError,
    TokenMalformedError,
)
from tickit.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenService,
)
from tickit.services.auth.dto import LoginIn, PrincipalOut, RefreshIn, TokenPairOut

log = logging.getLogger(__name__)


def _to_principal(user: User) -> PrincipalOut:
    return PrincipalOut(
        id=user.id,
        username=user.username,
        email=user.email,
        last_login=user.last_login,
        last_activity=user.last_activity,
    )


class AuthService(BaseService):
    """
    Authentication lifecycle service (login / refresh / principal lookup).

    Tokens are issued and verified through a pluggable :class:`TokenService`.
    Nothing about a session is stored server-side: a refresh simply verifies
    the presented refresh token and issues a fresh pair.
    """

    def __init__(self, *, tokens: TokenService, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the service with its dependencies.

        :param tokens: Adapter for issuing/verifying JWTs.
        :param ctx: Optional request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = tokens

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        A failed attempt against an existing account is written to the
        activity log; the error raised is identical whether the username is
        unknown or the password is wrong.

        :param dto: Login input.
        :returns: Access/Refresh token pair plus the user's identity.
        :raises InvalidCredentialsError: If credentials are invalid.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_username(dto.username)
            now = self.now_utc()

            if user is None or not user.verify_password(dto.password):
                if user is not None:
                    uow.activity_logs.record(
                        action=f"Failed Login Attempt: {user.username}",
                        user_id=user.id,
                        at=now,
                    )
                    # Keep the audit row even though the request fails
                    uow.commit()
                log.warning("Login failed: username=%s", dto.username)
                raise InvalidCredentialsError()

            repo.touch_login(user, now)
            uow.activity_logs.record(action=f"Logged In: {user.username}", user_id=user.id, at=now)
            username, email = user.username, user.email

        log.info("Login succeeded: username=%s", username)
        return TokenPairOut(
            access_token=self.tokens.issue_access(username),
            refresh_token=self.tokens.issue_refresh(username),
            username=username,
            email=email,
        )

    # ------------------------------------------------------------------ #
    # Refresh (rotation)
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Verify a refresh token and emit a new token pair.

        The previous refresh token is not blacklisted; it stays usable until
        its own expiry.

        :raises TokenError: When the token is malformed, expired, of the wrong
            type, or its subject no longer exists.
        """
        try:
            subject = self.tokens.extract_subject(dto.refresh_token)
        except TokenMalformedError as exc:
            raise TokenError("Invalid refresh token. Please log in again.") from exc

        with self.ro_uow() as uow:
            user = uow.users.get_by_username(subject)
            valid = user is not None and self.tokens.is_valid(
                dto.refresh_token, subject, token_type=REFRESH_TOKEN_TYPE
            )
            if not valid or user is None:
                log.info("Refresh rejected: subject=%s", subject)
                raise TokenError("Invalid or expired refresh token. Please log in again.")
            username, email = user.username, user.email

        return TokenPairOut(
            access_token=self.tokens.issue_access(username),
            refresh_token=self.tokens.issue_refresh(username),
            username=username,
            email=email,
        )

    # ------------------------------------------------------------------ #
    # Principal lookups
    # ------------------------------------------------------------------ #

    def load_principal(self, token: str) -> PrincipalOut:
        """
        Resolve the principal carried by a bearer access token.

        :raises TokenMalformedError: When no subject can be extracted.
        :raises TokenError: When the user is gone or the token is not a valid
            access token for it.
        """
        subject = self.tokens.extract_subject(token)
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(subject)
            if user is None or not self.tokens.is_valid(
                token, subject, token_type=ACCESS_TOKEN_TYPE
            ):
                raise TokenError("Access token expired. Please refresh.")
            return _to_principal(user)

    def whoami(self, username: str) -> PrincipalOut:
        """
        Return the profile of ``username``.

        :raises NotFoundError: If the user no longer exists.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                raise NotFoundError("User", username)
            return _to_principal(user)
