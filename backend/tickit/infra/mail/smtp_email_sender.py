"""SMTP delivery for HTML email."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Mapping
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from tickit.services._shared.errors import EmailDeliveryError
from tickit.services._shared.ports import EmailSender, MailMessage

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SmtpEmailSender(EmailSender):
    """
    Send one HTML message per SMTP session.

    :param host: SMTP server host.
    :param port: SMTP server port.
    :param sender: ``From`` address.
    :param username: Login user; authentication is skipped when empty.
    :param password: Login password.
    :param use_tls: Upgrade the connection with ``STARTTLS``.
    :param timeout: Socket timeout in seconds.
    """

    host: str
    port: int
    sender: str
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    timeout: float = 10.0

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> SmtpEmailSender:
        """Build the sender from the ``MAIL_*`` configuration keys."""
        host = config.get("MAIL_SERVER")
        if not host:
            raise RuntimeError("MAIL_SERVER must be configured when MAIL_BACKEND is 'smtp'.")
        return cls(
            host=str(host),
            port=int(config.get("MAIL_PORT", 587)),
            sender=str(config.get("MAIL_DEFAULT_SENDER") or config.get("MAIL_USERNAME") or ""),
            username=config.get("MAIL_USERNAME") or None,
            password=config.get("MAIL_PASSWORD") or None,
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            timeout=float(config.get("MAIL_TIMEOUT_SECONDS", 10)),
        )

    def _build(self, message: MailMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = self.sender
        mime["To"] = message.to
        mime.attach(MIMEText(message.html, "html", "utf-8"))
        return mime

    def send_html(self, message: MailMessage) -> None:
        mime = self._build(message)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.sendmail(self.sender, [message.to], mime.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            log.error(
                "SMTP delivery failed: host=%s port=%s to=%s error=%s",
                self.host,
                self.port,
                message.to,
                type(exc).__name__,
            )
            raise EmailDeliveryError() from exc
        log.info("Email sent: to=%s subject=%s", message.to, message.subject)
