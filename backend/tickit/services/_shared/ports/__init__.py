"""
tickit.services._shared.ports
=============================

Collection of *ports* (hexagonal interfaces) that the authentication services
depend on, together with in-memory implementations used in tests and
single-process development.

Modules
-------
- :mod:`token_service`:
    Defines :class:`~.TokenService` for issuing and verifying access/refresh tokens.

- :mod:`ephemeral_store`:
    Defines :class:`~.EphemeralStore`, a TTL key-value store for OTPs and
    pending registrations, plus :class:`~.InMemoryEphemeralStore`.

- :mod:`email_sender`:
    Defines :class:`~.EmailSender` and :class:`~.MailMessage`, plus
    :class:`~.InMemoryEmailSender`.

Design Notes
------------
Concrete adapters (Flask-JWT-Extended, Redis, SMTP) implement these
interfaces under ``tickit.infra``.
"""

from __future__ import annotations

from .email_sender import EmailSender, InMemoryEmailSender, MailMessage
from .ephemeral_store import EphemeralStore, InMemoryEphemeralStore
from .token_service import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenService

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "TokenService",
    "EphemeralStore",
    "InMemoryEphemeralStore",
    "EmailSender",
    "InMemoryEmailSender",
    "MailMessage",
]
