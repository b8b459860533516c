"""Audit trail of user-facing security actions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from tickit.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime, utcnow


class ActivityLog(PKMixin, ReprMixin, db.Model):
    """
    A single audited action ("Logged In: alice", "Sent OTP for forget password", ...).

    ``user_id`` is nullable so entries survive for actions without a resolved
    principal.
    """

    __tablename__ = "activity_logs"
    __repr_attr__ = "action"

    action: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (Index("ix_activity_logs_user_id_timestamp", "user_id", "timestamp"),)
