"""End-to-end tests for /register, /verify-otp, /login, /refresh and /log."""

from __future__ import annotations

import pytest

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.http import REFRESH_COOKIE, bearer, login, set_cookie_header
from tickit.core.config import TestingConfig
from tickit.core.extensions import db as _db
from tickit.factory import create_app
from tickit.models.activity_log import ActivityLog
from tickit.models.user import User

SIGNUP = {"username": "alice", "email": "alice@gmail.com", "password": "Str0ngPass"}


def actions(session) -> list[str]:
    return [a.action for a in session.query(ActivityLog).order_by(ActivityLog.id)]


class TestRegister:
    def test_sends_otp(self, client, outbox, ephemeral_store):
        resp = client.post("/register", json=SIGNUP)

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "OTP sent to your email. Please verify."}
        assert ephemeral_store.get("otp:alice@gmail.com") is not None
        [mail] = outbox.sent_to("alice@gmail.com")
        assert mail.subject == "Verify your Email - TickIT"

    def test_validation_errors(self, client, outbox):
        resp = client.post(
            "/register", json={"username": "a!", "email": "nope", "password": "letters"}
        )

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "validation_error"
        errors = body["details"]["errors"]
        assert set(errors) == {"username", "email", "password"}
        assert outbox.outbox == []

    def test_missing_body(self, client):
        resp = client.post("/register")
        assert resp.status_code == 400
        assert resp.get_json()["details"]["errors"]["username"] == ["Username is required"]

    def test_domain_not_allowed(self, client):
        resp = client.post("/register", json={**SIGNUP, "email": "alice@yahoo.com"})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "invalid_domain"
        assert resp.get_json()["error"] == "Please provide a valid Gmail address"

    def test_duplicate_username(self, client):
        UserFactory(username="alice", email="first@gmail.com")
        resp = client.post("/register", json=SIGNUP)
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Username already exists"

    def test_pending_otp(self, client):
        assert client.post("/register", json=SIGNUP).status_code == 200
        resp = client.post("/register", json=SIGNUP)
        assert resp.status_code == 429
        assert resp.get_json()["code"] == "otp_pending"


class TestVerifyOtp:
    def test_creates_account(self, client, session, ephemeral_store, outbox):
        client.post("/register", json=SIGNUP)
        otp = int(ephemeral_store.get("otp:alice@gmail.com"))

        resp = client.post("/verify-otp", json={"email": "alice@gmail.com", "otp": otp})

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Email verified and user registered successfully."}
        assert session.query(User).filter_by(username="alice").count() == 1
        assert outbox.sent_to("alice@gmail.com")[-1].subject == "Registration Successful"

        # The new account can log in right away
        assert login(client, "alice", SIGNUP["password"]).status_code == 200

    def test_wrong_otp(self, client, ephemeral_store):
        client.post("/register", json=SIGNUP)
        otp = int(ephemeral_store.get("otp:alice@gmail.com"))
        wrong = 100000 if otp != 100000 else 100001

        resp = client.post("/verify-otp", json={"email": "alice@gmail.com", "otp": wrong})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "invalid_otp"

    def test_not_requested(self, client):
        resp = client.post("/verify-otp", json={"email": "alice@gmail.com", "otp": 123456})
        assert resp.status_code == 410
        assert resp.get_json()["error"] == "OTP expired or not requested."

    @pytest.mark.parametrize("otp", [12345, 1234567, "abc"])
    def test_otp_must_be_six_digits(self, client, otp):
        resp = client.post("/verify-otp", json={"email": "alice@gmail.com", "otp": otp})
        assert resp.status_code == 400
        assert resp.get_json()["details"]["errors"]["otp"] == ["OTP must be 6 digits"]


class TestLogin:
    def test_returns_access_token_and_sets_refresh_cookie(self, app, client):
        user = UserFactory(username="alice")

        resp = login(client, "alice")

        assert resp.status_code == 200
        body = resp.get_json()
        assert set(body) == {"accessToken", "username", "email"}
        assert body["username"] == "alice"
        assert body["email"] == user.email

        cookie = set_cookie_header(resp)[REFRESH_COOKIE]
        assert cookie.value
        assert cookie["httponly"] is True
        assert cookie["path"] == "/refresh"
        assert int(cookie["max-age"]) == 1440 * 60
        assert cookie.value != body["accessToken"]

    def test_invalid_credentials(self, client, session):
        UserFactory(username="alice")

        wrong = login(client, "alice", "wrong-password")
        unknown = login(client, "ghost", "whatever1")

        for resp in (wrong, unknown):
            assert resp.status_code == 404
            assert resp.get_json()["error"] == "Invalid username password"
        assert actions(session) == ["Failed Login Attempt: alice"]

    def test_audits_success(self, client, session):
        UserFactory(username="alice")
        login(client, "alice")
        assert actions(session) == ["Logged In: alice"]

    def test_validation(self, client):
        resp = client.post("/login", json={"username": ""})
        assert resp.status_code == 400
        assert set(resp.get_json()["details"]["errors"]) == {"username", "password"}


class TestRefresh:
    def test_rotates_cookie_and_returns_access_token(self, client, session):
        UserFactory(username="alice")
        first = set_cookie_header(login(client, "alice"))[REFRESH_COOKIE].value

        resp = client.post("/refresh")

        assert resp.status_code == 200
        body = resp.get_json()
        assert set(body) == {"accessToken"}
        rotated = set_cookie_header(resp)[REFRESH_COOKIE]
        assert rotated.value and rotated.value != first
        assert actions(session)[-1] == "Refreshed Token"

        me = client.get("/me", headers=bearer(body["accessToken"]))
        assert me.status_code == 200

    def test_missing_cookie(self, client):
        resp = client.post("/refresh")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "you have logged out. Pls login"
        assert resp.get_json()["code"] == "missing_refresh_token"

    def test_invalid_cookie(self, client):
        client.set_cookie(REFRESH_COOKIE, "garbage", path="/refresh")
        resp = client.post("/refresh")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid refresh token. Please log in again."

    def test_access_token_in_cookie_is_rejected(self, client):
        UserFactory(username="alice")
        access = login(client, "alice").get_json()["accessToken"]
        client.set_cookie(REFRESH_COOKIE, access, path="/refresh")

        resp = client.post("/refresh")
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "invalid_token"


class TestLogout:
    def test_clears_cookie_and_audits(self, client, session):
        UserFactory(username="alice")
        access = login(client, "alice").get_json()["accessToken"]

        resp = client.post("/log", headers=bearer(access))

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Logged out successfully"}
        cleared = set_cookie_header(resp)[REFRESH_COOKIE]
        assert cleared.value == ""
        assert int(cleared["max-age"]) == 0
        assert actions(session)[-1] == "Logged Out"

        # The refresh cookie is gone from the client jar
        follow_up = client.post("/refresh")
        assert follow_up.status_code == 400

    def test_requires_authentication(self, client):
        resp = client.post("/log")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Authentication required"


class RateLimitedConfig(TestingConfig):
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    USE_PROXYFIX = False
    RATELIMIT_ENABLED = True
    AUTH_LOGIN_RATE_LIMIT = "2 per minute"


@pytest.fixture()
def limited_client():
    application = create_app(RateLimitedConfig, instance_relative_config=False)
    with application.app_context():
        _db.create_all()
        yield application.test_client()
        _db.session.remove()
        _db.drop_all()


def test_login_is_rate_limited(limited_client):
    for _ in range(2):
        resp = limited_client.post("/login", json={"username": "x", "password": DEFAULT_PASSWORD})
        assert resp.status_code == 404

    resp = limited_client.post("/login", json={"username": "x", "password": DEFAULT_PASSWORD})
    assert resp.status_code == 429
    assert resp.get_json()["code"] == "too_many_requests"
