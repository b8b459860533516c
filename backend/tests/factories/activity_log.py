"""Factory Boy definition for :class:`tickit.models.activity_log.ActivityLog`."""

from __future__ import annotations

import factory

from tests.factories import BaseFactory
from tickit.models.activity_log import ActivityLog
from tickit.models.base import utcnow


class ActivityLogFactory(BaseFactory):
    class Meta:
        model = ActivityLog

    id = None
    action = factory.Sequence(lambda n: f"Action {n}")
    timestamp = factory.LazyFunction(utcnow)
    user_id = None
