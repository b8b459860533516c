"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AccessTokenSchema,
    LoginResponseSchema,
    LoginSchema,
    RegisterSchema,
    VerifyOtpSchema,
)
from .password_reset import ChangePasswordSchema, EmailRequestSchema
from .user import ActivityEntrySchema, ActivityQuerySchema, PrincipalSchema

__all__ = [
    "AccessTokenSchema",
    "LoginResponseSchema",
    "LoginSchema",
    "RegisterSchema",
    "VerifyOtpSchema",
    "ChangePasswordSchema",
    "EmailRequestSchema",
    "ActivityEntrySchema",
    "ActivityQuerySchema",
    "PrincipalSchema",
]
