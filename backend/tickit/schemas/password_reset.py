"""Schemas for the forget-password endpoints."""

from __future__ import annotations

from marshmallow import Schema

from ._fields import email_field, password_field


class EmailRequestSchema(Schema):
    """Body of ``/forgetPassword/verifyMail``."""

    email = email_field()


class ChangePasswordSchema(Schema):
    """Body of ``/forgetPassword/changePassword``."""

    email = email_field()
    new_password = password_field("newPassword", data_key="newPassword")
    confirm_password = password_field("confirmPassword", data_key="confirmPassword")
