"""User (principal) model: the identity the authentication core verifies."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from tickit.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, UTCDateTime


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Related rows (password-reset OTPs, activity log entries) reference the user
    through one-directional foreign keys; there are no back-populated
    collections on this model.

    Fields
    ------
    username : str
        Login handle and JWT subject. Unique, never changes.
    email : str
        Contact email. Stored normalized (lowercase, trimmed). Unique.
    password_hash : str
        Hashed password (write-only setter via ``password``).
    last_login : datetime | None
        Time of the last successful login.
    last_activity : datetime | None
        Time of the last audited action.
    """

    __tablename__ = "users"
    __repr_attr__ = "username"

    # Columns
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_activity: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Constraints (unique constraints are backed by indexes on every dialect)
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
    )

    # Password handling: only the hash is stored, the raw value is never readable
    @property
    def password(self) -> Any:  # pragma: no cover - write-only attribute
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """Store a salted hash of ``raw``. Empty or non-string values raise ``ValueError``."""
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """Return ``True`` when ``raw`` matches the stored hash."""
        return bool(self.password_hash) and check_password_hash(self.password_hash, raw)

    # Normalisation
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        # Lowercased and trimmed so lookups and the unique constraint agree.
        # Format rules live in the request schemas; this is only a sanity net.
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Email is required.")
        email = value.strip().lower()
        local, _, domain = email.rpartition("@")
        if not local or "." not in domain:
            raise ValueError("Email format looks invalid.")
        return email

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        # Case is kept: "Bob" and "bob" are different handles.
        username = value.strip() if isinstance(value, str) else ""
        if not username:
            raise ValueError("Username is required.")
        return username
