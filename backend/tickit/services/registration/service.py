"""
RegistrationService
===================

Process-level service that registers a new identity in two steps:

- ``request_registration`` validates the request, parks the pending account
  in the ephemeral store under a fresh OTP and emails the code.
- ``verify_registration`` checks the code and creates the ``User`` exactly
  once, then clears the ephemeral state.

The welcome email is a post-commit side effect: its failure is logged and
never undoes the registration.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from tickit.repositories.user import UserRepository
from tickit.services._shared.base import BaseService, ServiceContext
from tickit.services._shared.errors import (
    ConflictError,
    DataInconsistencyError,
    EmailDeliveryError,
    InvalidOtpError,
    OtpAlreadyPendingError,
    OtpExpiredError,
    violates,
)
from tickit.services._shared.otp import generate_otp, otp_matches
from tickit.services._shared.policies.email import ensure_allowed_domain
from tickit.services._shared.ports import EphemeralStore
from tickit.services.notifications.account_mails import AccountMails
from tickit.services.registration.dto import (
    PendingRegistration,
    RegisteredUserOut,
    RegistrationIn,
    RegistrationSettings,
    RegistrationVerifyIn,
)

log = logging.getLogger(__name__)

OTP_KEY = "otp:{email}"
PENDING_USER_KEY = "user:{email}"


def _keys(email: str) -> tuple[str, str]:
    return OTP_KEY.format(email=email), PENDING_USER_KEY.format(email=email)


class RegistrationService(BaseService):
    """
    Orchestrates OTP-gated self-registration.
    """

    def __init__(
        self,
        *,
        store: EphemeralStore,
        mails: AccountMails,
        settings: RegistrationSettings,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        :param store: TTL key-value store holding the OTP and pending payload.
        :param mails: Account email renderer/sender.
        :param settings: Domain allow-list and OTP lifetime.
        """
        super().__init__(ctx=ctx)
        self.store = store
        self.mails = mails
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Step 1
    # ------------------------------------------------------------------ #

    def request_registration(self, dto: RegistrationIn) -> None:
        """
        Validate a sign-up request and email an OTP.

        :param dto: Registration input.
        :type dto: :class:`RegistrationIn`
        :raises InvalidDomainError: Email domain not on the allow-list.
        :raises ConflictError: Username or email already registered.
        :raises OtpAlreadyPendingError: A live OTP already exists for the email.
        :raises EmailDeliveryError: The OTP email could not be sent.
        """
        email = dto.email.strip().lower()
        username = dto.username.strip()
        ensure_allowed_domain(email, self.settings.allowed_domains)

        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            if repo.exists_by_username(username):
                raise ConflictError("User", "Username already exists")
            if repo.exists_by_email(email):
                raise ConflictError("User", "Email already exists")

        otp = generate_otp()
        otp_key, user_key = _keys(email)
        ttl = self.settings.otp_ttl

        # Claim the slot atomically: the loser of a race sees the winner's key
        if not self.store.set(otp_key, str(otp), ttl=ttl, only_if_absent=True):
            log.info("Registration OTP already pending: email=%s", email)
            raise OtpAlreadyPendingError()

        pending = PendingRegistration(
            username=username,
            email=email,
            password_hash=generate_password_hash(dto.password),
        )
        try:
            self.store.set(user_key, pending.to_json(), ttl=ttl)
            self.mails.send_registration_otp(
                to=email,
                username=username,
                otp=otp,
                ttl_minutes=max(1, int(ttl.total_seconds() // 60)),
            )
        except Exception as exc:
            self.store.delete(otp_key, user_key)
            if isinstance(exc, EmailDeliveryError):
                raise
            log.error("Registration OTP dispatch failed: email=%s", email, exc_info=True)
            raise EmailDeliveryError() from exc

        log.info("Registration OTP issued: email=%s", email)

    # ------------------------------------------------------------------ #
    # Step 2
    # ------------------------------------------------------------------ #

    def verify_registration(self, dto: RegistrationVerifyIn) -> RegisteredUserOut:
        """
        Confirm the OTP and create the user.

        :param dto: Email + OTP.
        :type dto: :class:`RegistrationVerifyIn`
        :returns: The created user.
        :rtype: :class:`RegisteredUserOut`
        :raises OtpExpiredError: No OTP is stored for the email.
        :raises InvalidOtpError: The OTP does not match.
        :raises DataInconsistencyError: OTP present but pending payload missing.
        :raises ConflictError: Username/email taken since the request.
        """
        email = dto.email.strip().lower()
        otp_key, user_key = _keys(email)

        stored_otp = self.store.get(otp_key)
        if stored_otp is None:
            raise OtpExpiredError("OTP expired or not requested.")
        if not otp_matches(stored_otp, dto.otp):
            log.info("Registration OTP mismatch: email=%s", email)
            raise InvalidOtpError()

        raw = self.store.get(user_key)
        if raw is None:
            log.error("Pending registration payload missing: email=%s", email)
            raise DataInconsistencyError()
        pending = PendingRegistration.from_json(raw)

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_username(pending.username):
                    raise ConflictError("User", "Username already taken.")
                if repo.exists_by_email(pending.email):
                    raise ConflictError("User", "Email already registered.")

                user = repo.create(
                    username=pending.username,
                    email=pending.email,
                    password_hash=pending.password_hash,
                )
                uow.activity_logs.record(
                    action=f"User verified email and registered: {user.username}",
                    user_id=user.id,
                    at=self.now_utc(),
                )
                out = RegisteredUserOut(id=user.id, username=user.username, email=user.email)
        except IntegrityError as exc:
            if violates(exc, "uq_users_username"):
                raise ConflictError("User", "Username already taken.") from exc
            if violates(exc, "uq_users_email"):
                raise ConflictError("User", "Email already registered.") from exc
            raise

        self.store.delete(otp_key, user_key)
        log.info("User registered: username=%s", out.username)

        try:
            self.mails.send_welcome(to=out.email, username=out.username)
        except EmailDeliveryError:
            log.warning("Welcome email failed: username=%s", out.username, exc_info=True)

        return out
