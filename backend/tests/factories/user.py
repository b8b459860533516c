"""Factory Boy definition for :class:`tickit.models.user.User`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from tests.factories import BaseFactory
from tickit.models.user import User

DEFAULT_PASSWORD = "Passw0rd1"

# Hashing once keeps factories fast; pbkdf2 is enough for tests
_DEFAULT_HASH = generate_password_hash(DEFAULT_PASSWORD, method="pbkdf2:sha256:1000")


class UserFactory(BaseFactory):
    """
    Build persisted :class:`tickit.models.user.User` instances.

    Notes
    -----
    - ``password`` is accepted as a factory argument and hashed onto
      ``password_hash``; the default is :data:`DEFAULT_PASSWORD`.
    """

    class Meta:
        model = User
        exclude = ("password",)

    id = None  # let autoincrement handle it
    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@gmail.com")
    password = None
    password_hash = factory.LazyAttribute(
        lambda o: _DEFAULT_HASH
        if o.password is None
        else generate_password_hash(o.password, method="pbkdf2:sha256:1000")
    )
