from __future__ import annotations

from typing import Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenService(Protocol):
    """
    Port for issuing and verifying signed, time-bounded bearer tokens.

    Implementations are stateless: validity is fully determined by the
    signature and the ``exp`` claim. There is no revocation list.
    """

    def issue_access(self, subject: str) -> str:
        """Return an access token for ``subject`` (``exp`` = now + access TTL)."""

    def issue_refresh(self, subject: str) -> str:
        """Return a refresh token for ``subject`` (``exp`` = now + refresh TTL)."""

    def extract_subject(self, token: str) -> str:
        """
        Return the ``sub`` claim of ``token``.

        Expired but otherwise intact tokens still yield their subject.

        :raises TokenMalformedError: When the token cannot be parsed or its
            signature does not verify.
        """

    def is_valid(
        self, token: str, expected_subject: str, *, token_type: str | None = None
    ) -> bool:
        """
        Return ``True`` iff the signature verifies, ``sub == expected_subject``,
        the token has not expired and, when ``token_type`` is given, its
        ``type`` claim matches. Never raises for bad tokens.
        """
