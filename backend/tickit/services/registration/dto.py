"""
DTOs for RegistrationService.

Contracts for the two-step, OTP-gated self-registration flow.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import timedelta

# --------------------------------------------------------------------------- #
# Input
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationIn:
    """
    Registration request.

    :param username: Requested login handle.
    :type username: str
    :param email: Contact email (normalized to lowercase+trim).
    :type email: str
    :param password: Raw password; hashed before it is parked anywhere.
    :type password: str
    """

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RegistrationVerifyIn:
    """
    OTP confirmation for a pending registration.

    :param email: Email the OTP was sent to.
    :type email: str
    :param otp: Six-digit code.
    :type otp: int
    """

    email: str
    otp: int


# --------------------------------------------------------------------------- #
# Ephemeral state
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class PendingRegistration:
    """Registration data parked in the ephemeral store until the OTP is verified."""

    username: str
    email: str
    password_hash: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> PendingRegistration:
        data = json.loads(raw)
        return cls(
            username=data["username"],
            email=data["email"],
            password_hash=data["password_hash"],
        )


@dataclass(frozen=True, slots=True)
class RegistrationSettings:
    """
    Tunables read from configuration.

    :param allowed_domains: Lower-cased email domains accepted for sign-up.
    :param otp_ttl: Lifetime of the OTP and the pending payload.
    """

    allowed_domains: frozenset[str]
    otp_ttl: timedelta = timedelta(minutes=2)


# --------------------------------------------------------------------------- #
# Output
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisteredUserOut:
    """
    Result of a completed registration.

    :param id: New user id.
    :param username: Registered username.
    :param email: Registered email.
    """

    id: int
    username: str
    email: str
