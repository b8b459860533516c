"""Account-lifecycle emails rendered from ``templates/email``."""

from __future__ import annotations

import logging

from flask import render_template

from tickit.services._shared.ports import EmailSender, MailMessage

log = logging.getLogger(__name__)

REGISTRATION_OTP_SUBJECT = "Verify your Email - {app_name}"
WELCOME_SUBJECT = "Registration Successful"
PASSWORD_RESET_OTP_SUBJECT = "OTP for Forget Password Request"


class AccountMails:
    """
    Render and send the three account emails.

    Rendering needs an application context (Flask's Jinja environment).
    Delivery failures surface as ``EmailDeliveryError`` from the sender.

    :param sender: Email delivery port.
    :param app_name: Product name shown in subjects and bodies.
    """

    def __init__(self, sender: EmailSender, *, app_name: str = "TickIT") -> None:
        self.sender = sender
        self.app_name = app_name

    def _send(self, *, to: str, subject: str, template: str, **context) -> None:
        html = render_template(f"email/{template}", app_name=self.app_name, **context)
        self.sender.send_html(MailMessage(to=to, subject=subject, html=html))
        log.info("Account email dispatched: template=%s to=%s", template, to)

    def send_registration_otp(
        self, *, to: str, username: str, otp: int | str, ttl_minutes: int
    ) -> None:
        self._send(
            to=to,
            subject=REGISTRATION_OTP_SUBJECT.format(app_name=self.app_name),
            template="registration_otp.html",
            username=username,
            otp=otp,
            ttl_minutes=ttl_minutes,
        )

    def send_welcome(self, *, to: str, username: str) -> None:
        self._send(to=to, subject=WELCOME_SUBJECT, template="welcome.html", username=username)

    def send_password_reset_otp(
        self, *, to: str, username: str, otp: int, ttl_minutes: int
    ) -> None:
        self._send(
            to=to,
            subject=PASSWORD_RESET_OTP_SUBJECT,
            template="password_reset_otp.html",
            username=username,
            otp=otp,
            ttl_minutes=ttl_minutes,
        )
