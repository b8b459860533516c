"""Field validators shared by the authentication schemas."""

from __future__ import annotations

from marshmallow import fields, validate

USERNAME_PATTERN = r"^[a-zA-Z0-9._-]{3,}$"
PASSWORD_PATTERN = r"^(?=.*[0-9])(?=.*[a-zA-Z]).{3,}$"
PASSWORD_RULE = (
    "Password must be at least 3 characters long and contain at least one letter and one number"
)


def email_field() -> fields.Email:
    return fields.Email(
        required=True,
        validate=validate.Length(max=254),
        error_messages={
            "required": "Email is required",
            "invalid": "Please provide a valid email address",
        },
    )


def password_field(name: str = "Password", **kwargs) -> fields.String:
    return fields.String(
        required=True,
        validate=[validate.Length(max=128), validate.Regexp(PASSWORD_PATTERN, error=PASSWORD_RULE)],
        error_messages={"required": f"{name} is required"},
        **kwargs,
    )


def otp_field() -> fields.Integer:
    return fields.Integer(
        required=True,
        validate=validate.Range(min=100_000, max=999_999, error="OTP must be 6 digits"),
        error_messages={"required": "OTP is required", "invalid": "OTP must be 6 digits"},
    )
