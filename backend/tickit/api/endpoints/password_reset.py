"""Forget-password endpoints (``/forgetPassword/*``)."""

from __future__ import annotations

from flask import Blueprint, request

from tickit.api.deps import message_response, password_reset_service, timing
from tickit.schemas import ChangePasswordSchema, EmailRequestSchema, VerifyOtpSchema
from tickit.services.password_reset.dto import ChangePasswordIn, ResetRequestIn, ResetVerifyIn

bp = Blueprint("password_reset", __name__)

email_request_schema = EmailRequestSchema()
verify_otp_schema = VerifyOtpSchema()
change_password_schema = ChangePasswordSchema()


@bp.post("/verifyMail")
@timing
def verify_mail():
    """Email a password-reset OTP to a registered address."""

    data = email_request_schema.load(request.get_json(silent=True) or {})
    password_reset_service().request_reset(ResetRequestIn(**data))
    return message_response("Email sent for verification")


@bp.post("/verifyOtp")
@timing
def verify_otp():
    """Mark the reset OTP as verified."""

    data = verify_otp_schema.load(request.get_json(silent=True) or {})
    password_reset_service().verify_otp(ResetVerifyIn(**data))
    return message_response("OTP verified")


@bp.post("/changePassword")
@timing
def change_password():
    """Store a new password once the OTP has been verified."""

    data = change_password_schema.load(request.get_json(silent=True) or {})
    password_reset_service().change_password(ChangePasswordIn(**data))
    return message_response("Password Updated")
