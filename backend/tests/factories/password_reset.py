"""Factory Boy definition for :class:`tickit.models.password_reset.PasswordResetOtp`."""

from __future__ import annotations

from datetime import timedelta

import factory

from tests.factories import BaseFactory
from tests.factories.user import UserFactory
from tickit.models.base import utcnow
from tickit.models.password_reset import PasswordResetOtp


class PasswordResetOtpFactory(BaseFactory):
    """Live, unverified reset OTP owned by a fresh user.

    Pass ``user=<User>`` to attach the record to an existing account.
    """

    class Meta:
        model = PasswordResetOtp
        exclude = ("user",)

    id = None
    user = factory.SubFactory(UserFactory)
    user_id = factory.LazyAttribute(lambda o: o.user.id)
    otp = factory.Sequence(lambda n: 100_000 + (n % 900_000))
    expiration_time = factory.LazyFunction(lambda: utcnow() + timedelta(minutes=2))
    otp_verified = False
