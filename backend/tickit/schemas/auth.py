"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from ._fields import USERNAME_PATTERN, email_field, otp_field, password_field


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = fields.String(
        required=True,
        validate=[
            validate.Length(min=3, max=50, error="Username should be at least 3 characters long"),
            validate.Regexp(
                USERNAME_PATTERN,
                error="Username should only contain letters, numbers, dots, underscores, or hyphens",
            ),
        ],
        error_messages={"required": "Username is required"},
    )
    email = email_field()
    password = password_field()


class VerifyOtpSchema(Schema):
    """Email + OTP pair (registration and password reset)."""

    email = email_field()
    otp = otp_field()


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    username = fields.String(
        required=True,
        validate=validate.Length(min=1, max=50, error="Username is required"),
        error_messages={"required": "Username is required"},
    )
    password = fields.String(
        required=True,
        validate=validate.Length(min=1, max=128, error="Password is required"),
        error_messages={"required": "Password is required"},
    )


class LoginResponseSchema(Schema):
    """Response payload of a successful login."""

    access_token = fields.String(required=True, data_key="accessToken")
    username = fields.String(required=True)
    email = fields.Email(required=True)


class AccessTokenSchema(Schema):
    """Response payload of a successful refresh."""

    access_token = fields.String(required=True, data_key="accessToken")
