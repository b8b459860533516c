"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from tickit.repositories.activity_log import ActivityLogRepository
from tickit.repositories.base import BaseRepository
from tickit.repositories.password_reset import PasswordResetOtpRepository
from tickit.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "ActivityLogRepository",
    "PasswordResetOtpRepository",
    "UserRepository",
]
