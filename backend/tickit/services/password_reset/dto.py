from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class ResetRequestIn:
    """
    Start a password reset.

    :param email: Account email.
    :type email: str
    """

    email: str


@dataclass(frozen=True, slots=True)
class ResetVerifyIn:
    """
    Confirm a reset OTP.

    :param email: Account email.
    :type email: str
    :param otp: Six-digit code from the email.
    :type otp: int
    """

    email: str
    otp: int


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Set a new password after the OTP was verified.

    :param email: Account email.
    :param new_password: Raw new password.
    :param confirm_password: Must equal ``new_password``.
    """

    email: str
    new_password: str
    confirm_password: str


@dataclass(frozen=True, slots=True)
class PasswordResetSettings:
    allowed_domains: frozenset[str]
    otp_ttl: timedelta = timedelta(minutes=2)
