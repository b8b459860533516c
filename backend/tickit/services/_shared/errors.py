"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between repositories, ports,
adapters and application services.

The translation to HTTP responses is handled by
``BaseService.translate_exceptions()`` which maps them onto
``tickit/core/errors.py`` classes.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError message mentions the constraint. SQLite
        reports the offending columns instead (``users.email``), so the column
        suffix of the constraint name is accepted as a fallback.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    # uq_<table>_<column> -> "<table>.<column>"
    if name.startswith("uq_"):
        parts = name[3:].split("_")
        for i in range(1, len(parts)):
            if f"{'_'.join(parts[:i])}.{'_'.join(parts[i:])}" in message:
                return True
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The message is client-safe: it is surfaced verbatim in the error body.
    """

    default_message = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0])


# --------------------------------------------------------------------------- #
# Lookup / uniqueness
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    :param detail: Optional client-facing message overriding the default.
    :type detail: str | None
    """

    entity: str
    key: str | int
    detail: str | None = None

    def __str__(self) -> str:
        return self.detail or f"{self.entity} not found: {self.key}"

    @property
    def message(self) -> str:
        return str(self)


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation (returned to clients).
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail

    @property
    def message(self) -> str:
        return str(self)


# --------------------------------------------------------------------------- #
# Input validation
# --------------------------------------------------------------------------- #


class InvalidDomainError(ServiceError):
    """Email domain is not on the allow-list."""

    default_message = "Please provide a valid Gmail address"


class PasswordMismatchError(ServiceError):
    """``newPassword`` and ``confirmPassword`` differ."""

    default_message = "Both the password should be same"


# --------------------------------------------------------------------------- #
# Credentials / tokens
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """Unknown username or wrong password (deliberately indistinguishable)."""

    default_message = "Invalid username password"


class TokenError(ServiceError):
    """A bearer or refresh token was rejected."""

    default_message = "Invalid or expired token."


class TokenMalformedError(TokenError):
    """Token could not be parsed or its signature does not verify."""

    default_message = "Malformed token."


# --------------------------------------------------------------------------- #
# OTP lifecycle
# --------------------------------------------------------------------------- #


class InvalidOtpError(ServiceError):
    """Submitted OTP does not match (or matches a different user)."""

    default_message = "Invalid OTP."


class OtpExpiredError(ServiceError):
    """OTP expired or was never requested."""

    default_message = "OTP has expired"


class OtpNotVerifiedError(ServiceError):
    """Password change attempted before the reset OTP was verified."""

    default_message = "OTP verification required before changing password"


class OtpAlreadyPendingError(ServiceError):
    """An OTP for this email is still live; re-sending is refused."""

    default_message = (
        "An OTP was already sent to this email. Please verify it or wait before retrying."
    )


# --------------------------------------------------------------------------- #
# Infrastructure faults surfaced to clients as 5xx
# --------------------------------------------------------------------------- #


class DataInconsistencyError(ServiceError):
    """State that should always be written together was found half-present."""

    default_message = "Temporary user data not found."


class EmailDeliveryError(ServiceError):
    """The email collaborator failed to deliver a message."""

    default_message = "Failed to send email"
