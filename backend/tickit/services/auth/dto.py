# tickit/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param username: Login handle.
    :type username: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    username: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT (read from the cookie).
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    :param username: Subject both tokens were issued for.
    :type username: str
    :param email: Email of the subject.
    :type email: str
    """

    access_token: str
    refresh_token: str
    username: str
    email: str


@dataclass(frozen=True, slots=True)
class PrincipalOut:
    """
    Authenticated principal, detached from the ORM session.

    :param id: User id.
    :param username: Login handle (token subject).
    :param email: Contact email.
    :param last_login: Time of the last successful login.
    :param last_activity: Time of the last audited action.
    """

    id: int
    username: str
    email: str
    last_login: datetime | None = None
    last_activity: datetime | None = None
