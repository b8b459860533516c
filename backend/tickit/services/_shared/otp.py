"""One-time password helpers."""

from __future__ import annotations

import secrets

OTP_MIN = 100_000
OTP_MAX = 999_999


def generate_otp() -> int:
    """Return a uniformly random six-digit code in ``[100000, 999999]``."""
    return OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1)


def otp_matches(expected: str | int | None, submitted: str | int) -> bool:
    """Constant-time comparison of two OTP values (compared as decimal strings)."""
    if expected is None:
        return False
    return secrets.compare_digest(str(expected).strip(), str(submitted).strip())
