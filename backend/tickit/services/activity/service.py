from __future__ import annotations

import logging

from tickit.services._shared.base import BaseService

log = logging.getLogger(__name__)


class ActivityService(BaseService):
    """Audit trail writer used by the ``log_activity`` route decorator."""

    def record(self, action: str, username: str) -> bool:
        """
        Append an activity row for ``username`` and bump its ``last_activity``.

        :param action: Human-readable action label.
        :param username: Acting user.
        :returns: ``False`` when the user no longer exists (nothing written).
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                log.warning("Activity for unknown user dropped: action=%s", action)
                return False
            now = self.now_utc()
            uow.activity_logs.record(action=action, user_id=user.id, at=now)
            uow.users.touch_activity(user, now)
        return True

    def recent(self, username: str, *, limit: int = 50) -> list[tuple[str, str]]:
        """Return ``(action, iso_timestamp)`` pairs, newest first."""
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                return []
            return [
                (entry.action, entry.timestamp.isoformat())
                for entry in uow.activity_logs.list_for_user(user.id, limit=limit)
            ]
