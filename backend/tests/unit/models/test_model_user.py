"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from tickit.models.user import User


class TestUser:
    def test_password_hashing(self, session):
        u = User(email="tester@gmail.com", username="tester")
        u.password = "Secret123"
        session.add(u)
        session.commit()
        assert u.password_hash != "Secret123"
        assert u.verify_password("Secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(email="a@gmail.com", username="u1")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_empty_password_rejected(self):
        u = User(email="a@gmail.com", username="u1")
        with pytest.raises(ValueError):
            u.password = ""

    def test_email_normalized_and_unique(self, session):
        u1 = User(email="  Alice@Gmail.com ", username="alice")
        u1.password = "pw"
        session.add(u1)
        session.commit()
        assert u1.email == "alice@gmail.com"

        u2 = User(email="alice@gmail.com", username="alice2")
        u2.password = "pw"
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_username_unique_and_case_sensitive(self, session):
        u1 = User(email="b1@gmail.com", username="bob")
        u1.password = "pw"
        session.add(u1)
        session.commit()

        # Usernames keep their case; "Bob" is a different handle
        u2 = User(email="b2@gmail.com", username="Bob")
        u2.password = "pw"
        session.add(u2)
        session.commit()

        u3 = User(email="b3@gmail.com", username="bob")
        u3.password = "pw"
        session.add(u3)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_basic_validations(self):
        with pytest.raises(ValueError):
            User(email="", username="u")
        with pytest.raises(ValueError):
            User(email="not-an-email", username="u")
        with pytest.raises(ValueError):
            User(email="x@gmail.com", username="   ")

    def test_timestamps_are_utc_aware(self, session):
        u = User(email="c@gmail.com", username="charlie")
        u.password = "pw"
        session.add(u)
        session.commit()
        session.expire_all()

        reloaded = session.get(User, u.id)
        assert reloaded.created_at.tzinfo is not None
        assert reloaded.last_login is None
        assert reloaded.last_activity is None

    def test_repr_mentions_username(self):
        u = User(email="d@gmail.com", username="dora")
        assert "dora" in repr(u)
