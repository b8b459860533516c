"""Tests for the OTP-gated registration flow."""

from __future__ import annotations

from datetime import timedelta

import pytest
from werkzeug.security import check_password_hash

from tests.factories.user import UserFactory
from tickit.models.activity_log import ActivityLog
from tickit.models.user import User
from tickit.repositories.user import UserRepository
from tickit.services._shared.errors import (
    ConflictError,
    DataInconsistencyError,
    EmailDeliveryError,
    InvalidDomainError,
    InvalidOtpError,
    OtpAlreadyPendingError,
    OtpExpiredError,
)
from tickit.services._shared.ports import InMemoryEmailSender, InMemoryEphemeralStore
from tickit.services.notifications.account_mails import AccountMails
from tickit.services.registration.dto import (
    PendingRegistration,
    RegistrationIn,
    RegistrationSettings,
    RegistrationVerifyIn,
)
from tickit.services.registration.service import RegistrationService

PASSWORD = "Str0ngPass"


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FailingSender(InMemoryEmailSender):
    """Outbox that refuses messages whose subject contains ``fail_on``."""

    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on

    def send_html(self, message):
        if self.fail_on in message.subject:
            raise EmailDeliveryError()
        super().send_html(message)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock) -> InMemoryEphemeralStore:
    return InMemoryEphemeralStore(clock=clock)


@pytest.fixture()
def sender() -> InMemoryEmailSender:
    return InMemoryEmailSender()


def build_service(store, sender) -> RegistrationService:
    return RegistrationService(
        store=store,
        mails=AccountMails(sender),
        settings=RegistrationSettings(
            allowed_domains=frozenset({"gmail.com", "jadeglobal.com"}),
            otp_ttl=timedelta(minutes=2),
        ),
    )


@pytest.fixture()
def service(app, store, sender) -> RegistrationService:
    return build_service(store, sender)


def register(service, username="alice", email="alice@gmail.com"):
    service.request_registration(RegistrationIn(username=username, email=email, password=PASSWORD))


class TestRequestRegistration:
    def test_parks_pending_user_and_emails_otp(self, service, store, sender):
        register(service, email="  Alice@Gmail.com ")

        otp = store.get("otp:alice@gmail.com")
        assert otp is not None and len(otp) == 6
        pending = PendingRegistration.from_json(store.get("user:alice@gmail.com"))
        assert pending.username == "alice"
        assert pending.email == "alice@gmail.com"
        assert pending.password_hash != PASSWORD
        assert check_password_hash(pending.password_hash, PASSWORD)

        [mail] = sender.sent_to("alice@gmail.com")
        assert mail.subject == "Verify your Email - TickIT"
        assert otp in mail.html
        assert "alice" in mail.html

    def test_otp_and_payload_share_ttl(self, service, store):
        register(service)
        assert store.ttl("otp:alice@gmail.com") == pytest.approx(120)
        assert store.ttl("user:alice@gmail.com") == pytest.approx(120)

    def test_rejects_domain_outside_allow_list(self, service, store, sender):
        with pytest.raises(InvalidDomainError):
            register(service, email="alice@yahoo.com")
        assert store.get("otp:alice@yahoo.com") is None
        assert sender.outbox == []

    def test_rejects_existing_username(self, service, sender):
        UserFactory(username="alice", email="other@gmail.com")
        with pytest.raises(ConflictError, match="Username already exists"):
            register(service)
        assert sender.outbox == []

    def test_rejects_existing_email(self, service):
        UserFactory(username="someone", email="alice@gmail.com")
        with pytest.raises(ConflictError, match="Email already exists"):
            register(service)

    def test_refuses_second_request_while_otp_is_live(self, service, store, sender):
        register(service)
        first_otp = store.get("otp:alice@gmail.com")

        with pytest.raises(OtpAlreadyPendingError):
            register(service, username="alice2")

        assert store.get("otp:alice@gmail.com") == first_otp
        assert len(sender.outbox) == 1

    def test_new_request_allowed_after_expiry(self, service, store, clock, sender):
        register(service)
        clock.now += 120
        register(service)
        assert len(sender.outbox) == 2

    def test_mail_failure_clears_ephemeral_state(self, app, store):
        service = build_service(store, FailingSender(fail_on="Verify"))
        with pytest.raises(EmailDeliveryError):
            register(service)
        assert store.get("otp:alice@gmail.com") is None
        assert store.get("user:alice@gmail.com") is None


class TestVerifyRegistration:
    def test_creates_user_and_clears_state(self, service, store, sender, session):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))

        out = service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))

        user = session.get(User, out.id)
        assert user.username == "alice"
        assert user.verify_password(PASSWORD)
        assert store.get("otp:alice@gmail.com") is None
        assert store.get("user:alice@gmail.com") is None

        actions = [a.action for a in session.query(ActivityLog).filter_by(user_id=user.id)]
        assert actions == ["User verified email and registered: alice"]
        assert [m.subject for m in sender.sent_to("alice@gmail.com")] == [
            "Verify your Email - TickIT",
            "Registration Successful",
        ]

    def test_wrong_otp_keeps_pending_state(self, service, store, session):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))
        wrong = 100000 if otp != 100000 else 100001

        with pytest.raises(InvalidOtpError):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=wrong))

        assert store.get("otp:alice@gmail.com") == str(otp)
        assert session.query(User).count() == 0

    def test_without_request_is_expired(self, service):
        with pytest.raises(OtpExpiredError, match="expired or not requested"):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=123456))

    def test_after_ttl_is_expired(self, service, store, clock, session):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))
        clock.now += 121

        with pytest.raises(OtpExpiredError):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))
        assert session.query(User).count() == 0

    def test_missing_payload_is_inconsistency(self, service, store):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))
        store.delete("user:alice@gmail.com")

        with pytest.raises(DataInconsistencyError):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))

    def test_username_taken_meanwhile(self, service, store, session):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))
        UserFactory(username="alice", email="first@gmail.com")

        with pytest.raises(ConflictError, match="Username already taken"):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))
        assert session.query(User).filter_by(email="alice@gmail.com").count() == 0

    @pytest.mark.parametrize(
        ("existing", "message"),
        [
            ({"username": "alice", "email": "first@gmail.com"}, "Username already taken"),
            ({"username": "first", "email": "alice@gmail.com"}, "Email already registered"),
        ],
    )
    def test_unique_constraint_race_is_conflict(
        self, service, store, session, monkeypatch, existing, message
    ):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))
        UserFactory(**existing)
        # Both existence checks pass, as when another verify commits in between
        monkeypatch.setattr(UserRepository, "exists_by_username", lambda self, username: False)
        monkeypatch.setattr(UserRepository, "exists_by_email", lambda self, email: False)

        with pytest.raises(ConflictError, match=message):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))
        assert store.get("otp:alice@gmail.com") == str(otp)

    def test_second_verify_cannot_create_twice(self, service, store, session):
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))
        service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))

        with pytest.raises(OtpExpiredError):
            service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))
        assert session.query(User).count() == 1

    def test_welcome_failure_does_not_undo_registration(self, app, store, session):
        service = build_service(store, FailingSender(fail_on="Registration Successful"))
        register(service)
        otp = int(store.get("otp:alice@gmail.com"))

        out = service.verify_registration(RegistrationVerifyIn(email="alice@gmail.com", otp=otp))

        assert session.get(User, out.id) is not None
        assert store.get("otp:alice@gmail.com") is None
