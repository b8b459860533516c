from tickit.models.activity_log import ActivityLog
from tickit.models.password_reset import PasswordResetOtp
from tickit.models.user import User

__all__ = [
    "ActivityLog",
    "PasswordResetOtp",
    "User",
]
