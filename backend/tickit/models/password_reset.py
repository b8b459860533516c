"""Password-reset OTP record (at most one per user)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tickit.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime, utcnow


class PasswordResetOtp(PKMixin, ReprMixin, db.Model):
    """
    One-time code gating a password change.

    Fields
    ------
    otp : int
        Six-digit code (100000-999999).
    expiration_time : datetime
        Absolute expiry; the record is unusable afterwards even when verified.
    otp_verified : bool
        Flipped once the owner submitted the right code.
    user_id : int
        Owner. Unique: a new request replaces the previous record.
    """

    __tablename__ = "password_reset_otps"

    otp: Mapped[int] = mapped_column(Integer, nullable=False)
    expiration_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    otp_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (UniqueConstraint("user_id", name="uq_password_reset_otps_user_id"),)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once ``now`` has reached ``expiration_time``."""
        return (now or utcnow()) >= self.expiration_time
