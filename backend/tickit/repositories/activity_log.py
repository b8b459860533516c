"""Repository for the :class:`ActivityLog` audit trail."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from tickit.models.activity_log import ActivityLog
from tickit.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    model = ActivityLog

    def _filterable_fields(self):
        return {"user_id": ActivityLog.user_id, "action": ActivityLog.action}

    def record(self, *, action: str, user_id: int | None, at: datetime) -> ActivityLog:
        """Append an entry and flush."""
        return self.add(ActivityLog(action=action, user_id=user_id, timestamp=at))

    def list_for_user(self, user_id: int, *, limit: int = 50) -> list[ActivityLog]:
        """Most recent entries first."""
        stmt = (
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())
