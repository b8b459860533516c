from __future__ import annotations

import smtplib

import pytest

from tickit.infra.mail.smtp_email_sender import SmtpEmailSender
from tickit.services._shared.errors import EmailDeliveryError
from tickit.services._shared.ports import MailMessage


class FakeSMTP:
    """Records the calls a single SMTP session receives."""

    instances: list[FakeSMTP] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[tuple] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append(("quit",))
        return False

    def starttls(self):
        self.calls.append(("starttls",))

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def sendmail(self, sender, recipients, body):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.calls.append(("sendmail", sender, tuple(recipients), body))


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


MESSAGE = MailMessage(to="alice@gmail.com", subject="Hello", html="<p>Hi there</p>")


class TestSmtpEmailSender:
    def test_sends_with_tls_and_login(self, fake_smtp):
        sender = SmtpEmailSender(
            host="smtp.test", port=2525, sender="noreply@tickit.local", username="u", password="p"
        )
        sender.send_html(MESSAGE)

        session = fake_smtp.instances[0]
        assert (session.host, session.port) == ("smtp.test", 2525)
        names = [c[0] for c in session.calls]
        assert names == ["starttls", "login", "sendmail", "quit"]
        _, from_addr, recipients, body = session.calls[2]
        assert from_addr == "noreply@tickit.local"
        assert recipients == ("alice@gmail.com",)
        assert "Subject: Hello" in body
        assert "text/html" in body

    def test_skips_tls_and_login_when_not_configured(self, fake_smtp):
        sender = SmtpEmailSender(host="smtp.test", port=25, sender="x@tickit.local", use_tls=False)
        sender.send_html(MESSAGE)
        names = [c[0] for c in fake_smtp.instances[0].calls]
        assert names == ["sendmail", "quit"]

    @pytest.mark.parametrize(
        "error", [smtplib.SMTPRecipientsRefused({}), ConnectionRefusedError("down")]
    )
    def test_failures_become_delivery_errors(self, fake_smtp, error):
        fake_smtp.fail_with = error
        sender = SmtpEmailSender(host="smtp.test", port=25, sender="x@tickit.local")
        with pytest.raises(EmailDeliveryError, match="Failed to send email"):
            sender.send_html(MESSAGE)

    def test_from_config(self):
        sender = SmtpEmailSender.from_config(
            {
                "MAIL_SERVER": "smtp.gmail.com",
                "MAIL_PORT": "587",
                "MAIL_USERNAME": "bot@gmail.com",
                "MAIL_PASSWORD": "secret",
                "MAIL_DEFAULT_SENDER": None,
            }
        )
        assert sender.port == 587
        assert sender.sender == "bot@gmail.com"
        assert sender.use_tls is True

    def test_from_config_requires_server(self):
        with pytest.raises(RuntimeError, match="MAIL_SERVER"):
            SmtpEmailSender.from_config({"MAIL_SERVER": ""})
