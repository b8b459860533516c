"""Repository for :class:`PasswordResetOtp` records."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select

from tickit.models.password_reset import PasswordResetOtp
from tickit.repositories.base import BaseRepository


class PasswordResetOtpRepository(BaseRepository[PasswordResetOtp]):
    """Lookups by owner, by ``(otp, owner)`` pair, and bulk expiry purges."""

    model = PasswordResetOtp

    def _filterable_fields(self):
        return {
            "id": PasswordResetOtp.id,
            "user_id": PasswordResetOtp.user_id,
        }

    def get_by_user(self, user_id: int) -> PasswordResetOtp | None:
        stmt = select(PasswordResetOtp).where(PasswordResetOtp.user_id == user_id)
        return cast(PasswordResetOtp | None, self.session.execute(stmt).scalars().first())

    def get_by_otp_and_user(self, otp: int, user_id: int) -> PasswordResetOtp | None:
        """Joint lookup: a wrong code and a code issued to someone else look the same."""
        stmt = select(PasswordResetOtp).where(
            PasswordResetOtp.otp == otp,
            PasswordResetOtp.user_id == user_id,
        )
        return cast(PasswordResetOtp | None, self.session.execute(stmt).scalars().first())

    def delete_by_user(self, user_id: int) -> int:
        """Remove the user's record (if any) and flush.

        :returns: Number of deleted rows.
        """
        removed = self.delete_where(user_id=user_id)
        self.flush()
        return removed

    def replace_for_user(
        self, *, user_id: int, otp: int, expiration_time: datetime
    ) -> PasswordResetOtp:
        """Delete-then-insert the user's record inside the caller's transaction.

        :raises sqlalchemy.exc.IntegrityError: When a concurrent transaction
            inserted a record for the same user first.
        """
        self.delete_by_user(user_id)
        record = PasswordResetOtp(
            user_id=user_id,
            otp=otp,
            expiration_time=expiration_time,
            otp_verified=False,
        )
        return self.add(record)

    def delete_expired(self, now: datetime) -> int:
        """Purge every record whose ``expiration_time`` is not after ``now``."""
        stmt = delete(PasswordResetOtp).where(PasswordResetOtp.expiration_time <= now)
        result = self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return int(getattr(result, "rowcount", 0) or 0)
