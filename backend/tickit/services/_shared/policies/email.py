from __future__ import annotations

from collections.abc import Iterable

from tickit.services._shared.errors import InvalidDomainError


def parse_domains(raw: str | Iterable[str] | None) -> frozenset[str]:
    """Normalise a comma-separated string (or iterable) of domains to lower case."""
    if raw is None:
        return frozenset()
    items = raw.split(",") if isinstance(raw, str) else raw
    return frozenset(d.strip().lower().lstrip("@") for d in items if d and d.strip())


def email_domain(email: str) -> str:
    """Return the part after the last ``@`` (lower-cased)."""
    return email.rsplit("@", 1)[-1].strip().lower() if "@" in email else ""


def ensure_allowed_domain(email: str, allowed: Iterable[str]) -> None:
    """
    Reject addresses outside the allow-list.

    :raises InvalidDomainError: When the domain is not allowed (or the list is empty).
    """
    if email_domain(email) not in set(allowed):
        raise InvalidDomainError()
