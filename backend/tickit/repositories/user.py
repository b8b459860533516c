"""User repository for lookups used by the authentication core."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select

from tickit.models.user import User
from tickit.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles JWT or session creation, only DB-level user management.
    """

    model = User

    def _filterable_fields(self):
        """Whitelist fields safe for equality filters."""
        return {
            "id": User.id,
            "email": User.email,
            "username": User.username,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by exact username (usernames are case-sensitive)."""
        stmt = select(User).where(User.username == username.strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_username(self, username: str) -> bool:
        stmt = select(User.id).where(User.username == username.strip())
        return self.session.execute(stmt).first() is not None

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == email.lower().strip())
        return self.session.execute(stmt).first() is not None

    # ---------------------------- Mutations ----------------------------

    def create(self, *, username: str, email: str, password_hash: str) -> User:
        """Insert a user from an already-hashed password and flush.

        :raises sqlalchemy.exc.IntegrityError: On username/email collisions.
        """
        user = User(username=username, email=email, password_hash=password_hash)
        return self.add(user)

    def update_password(self, user: User, new_password: str) -> None:
        """Hash ``new_password`` onto ``user`` and flush."""
        user.password = new_password  # invokes setter -> hash
        self.flush()

    def touch_login(self, user: User, at: datetime) -> None:
        user.last_login = at
        self.flush()

    def touch_activity(self, user: User, at: datetime) -> None:
        user.last_activity = at
        self.flush()
