"""
PasswordResetService
====================

OTP-gated password reset backed by the ``password_reset_otps`` table:

1. ``request_reset`` replaces any previous OTP of the user and emails a new one.
2. ``verify_otp`` flips the record to verified while it is still live.
3. ``change_password`` consumes a verified, live record and stores the new hash.

At most one record exists per user; the unique ``user_id`` constraint is the
final arbiter when two requests race.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from tickit.models.user import User
from tickit.repositories.user import UserRepository
from tickit.services._shared.base import BaseService, ServiceContext
from tickit.services._shared.errors import (
    ConflictError,
    InvalidOtpError,
    NotFoundError,
    OtpExpiredError,
    OtpNotVerifiedError,
    PasswordMismatchError,
    violates,
)
from tickit.services._shared.otp import generate_otp
from tickit.services._shared.policies.email import ensure_allowed_domain
from tickit.services.notifications.account_mails import AccountMails
from tickit.services.password_reset.dto import (
    ChangePasswordIn,
    PasswordResetSettings,
    ResetRequestIn,
    ResetVerifyIn,
)

log = logging.getLogger(__name__)

UNKNOWN_EMAIL_MESSAGE = "Please provide a valid email"


class PasswordResetService(BaseService):
    """Orchestrates the three password-reset steps."""

    def __init__(
        self,
        *,
        mails: AccountMails,
        settings: PasswordResetSettings,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.mails = mails
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _normalize(self, email: str) -> str:
        normalized = email.strip().lower()
        ensure_allowed_domain(normalized, self.settings.allowed_domains)
        return normalized

    @staticmethod
    def _require_user(repo: UserRepository, email: str, *, for_update: bool = False) -> User:
        user = repo.get_by_email(email)
        if user is not None and for_update:
            user = repo.get_for_update(user.id)
        if user is None:
            raise NotFoundError("User", email, UNKNOWN_EMAIL_MESSAGE)
        return user

    # ------------------------------------------------------------------ #
    # Step 1: request
    # ------------------------------------------------------------------ #

    def request_reset(self, dto: ResetRequestIn) -> None:
        """
        Issue a new reset OTP, replacing any previous one, and email it.

        :raises InvalidDomainError: Email domain not on the allow-list.
        :raises NotFoundError: No account for the email.
        :raises ConflictError: A concurrent request inserted a record first.
        :raises EmailDeliveryError: The OTP email could not be sent.
        """
        email = self._normalize(dto.email)
        otp = generate_otp()
        ttl = self.settings.otp_ttl

        try:
            with self.rw_uow() as uow:
                user = self._require_user(uow.users, email, for_update=True)
                now = self.now_utc()
                uow.password_resets.replace_for_user(
                    user_id=user.id,
                    otp=otp,
                    expiration_time=now + ttl,
                )
                uow.activity_logs.record(
                    action="Sent OTP for forget password", user_id=user.id, at=now
                )
                username = user.username
        except IntegrityError as exc:
            if violates(exc, "uq_password_reset_otps_user_id"):
                log.info("Concurrent reset request lost the race: email=%s", email)
                raise ConflictError(
                    "PasswordResetOtp",
                    "A password reset is already in progress. Please retry.",
                ) from exc
            raise

        self.mails.send_password_reset_otp(
            to=email,
            username=username,
            otp=otp,
            ttl_minutes=max(1, int(ttl.total_seconds() // 60)),
        )
        log.info("Password reset OTP issued: email=%s", email)

    # ------------------------------------------------------------------ #
    # Step 2: verify
    # ------------------------------------------------------------------ #

    def verify_otp(self, dto: ResetVerifyIn) -> None:
        """
        Mark the user's reset OTP as verified.

        A wrong code and a code issued to another user are reported the same way.

        :raises InvalidOtpError: No record matches ``(otp, user)``.
        :raises OtpExpiredError: The record expired (it is deleted).
        """
        email = self._normalize(dto.email)
        expired = False

        with self.rw_uow() as uow:
            user = self._require_user(uow.users, email, for_update=True)
            record = uow.password_resets.get_by_otp_and_user(dto.otp, user.id)
            if record is None:
                log.info("Reset OTP mismatch: email=%s", email)
                raise InvalidOtpError(f"Invalid OTP for email: {email}")

            now = self.now_utc()
            if record.is_expired(now):
                uow.password_resets.delete(record)
                expired = True
            else:
                record.otp_verified = True
                try:
                    uow.password_resets.flush()
                except StaleDataError as exc:
                    # A concurrent request replaced the record after the lookup
                    log.info("Reset OTP replaced during verification: email=%s", email)
                    raise InvalidOtpError(f"Invalid OTP for email: {email}") from exc
                uow.activity_logs.record(
                    action="Verified OTP for forget password", user_id=user.id, at=now
                )

        # Raised after the commit so the expired record stays deleted
        if expired:
            raise OtpExpiredError()

    # ------------------------------------------------------------------ #
    # Step 3: change
    # ------------------------------------------------------------------ #

    def change_password(self, dto: ChangePasswordIn) -> None:
        """
        Replace the password once the reset OTP has been verified.

        :raises InvalidOtpError: No reset record exists for the user.
        :raises OtpNotVerifiedError: The record was not verified yet.
        :raises OtpExpiredError: The record expired (it is deleted).
        :raises PasswordMismatchError: ``new_password != confirm_password``.
        """
        email = self._normalize(dto.email)
        expired = False

        with self.rw_uow() as uow:
            user = self._require_user(uow.users, email, for_update=True)
            record = uow.password_resets.get_by_user(user.id)
            if record is None:
                raise InvalidOtpError(OtpNotVerifiedError.default_message)

            # Expired records are consumed whether or not they were verified
            now = self.now_utc()
            if record.is_expired(now):
                uow.password_resets.delete(record)
                expired = True
            else:
                if not record.otp_verified:
                    raise OtpNotVerifiedError()
                if dto.new_password != dto.confirm_password:
                    raise PasswordMismatchError()
                uow.users.update_password(user, dto.new_password)
                uow.password_resets.delete(record)
                uow.activity_logs.record(
                    action="password changed after OTP verification", user_id=user.id, at=now
                )

        if expired:
            raise OtpExpiredError()
        log.info("Password changed via reset: email=%s", email)
