from __future__ import annotations

from datetime import timedelta

import pytest
from flask_jwt_extended import decode_token

from tickit.infra.jwt.flask_jwt_token_service import FlaskJWTTokenService
from tickit.services._shared.errors import TokenMalformedError
from tickit.services._shared.ports import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE


@pytest.fixture()
def tokens(app) -> FlaskJWTTokenService:
    return FlaskJWTTokenService()


class TestFlaskJWTTokenService:
    def test_issued_tokens_carry_subject_and_type(self, tokens):
        access = tokens.issue_access("alice")
        refresh = tokens.issue_refresh("alice")

        assert decode_token(access)["sub"] == "alice"
        assert decode_token(access)["type"] == ACCESS_TOKEN_TYPE
        assert decode_token(refresh)["type"] == REFRESH_TOKEN_TYPE

    def test_lifetimes_follow_config(self, app, tokens):
        access = decode_token(tokens.issue_access("alice"))
        refresh = decode_token(tokens.issue_refresh("alice"))

        assert access["exp"] - access["iat"] == int(
            app.config["JWT_ACCESS_TOKEN_EXPIRES"].total_seconds()
        )
        assert refresh["exp"] - refresh["iat"] == 1440 * 60

    def test_is_valid_checks_subject_and_type(self, tokens):
        access = tokens.issue_access("alice")

        assert tokens.is_valid(access, "alice") is True
        assert tokens.is_valid(access, "alice", token_type=ACCESS_TOKEN_TYPE) is True
        assert tokens.is_valid(access, "alice", token_type=REFRESH_TOKEN_TYPE) is False
        assert tokens.is_valid(access, "bob") is False
        assert tokens.is_valid("garbage", "alice") is False

    def test_expired_token_keeps_subject_but_is_invalid(self, tokens, freeze_time):
        with freeze_time("2024-01-01 12:00:00") as frozen:
            access = tokens.issue_access("alice")
            frozen.tick(timedelta(minutes=59))
            assert tokens.is_valid(access, "alice") is True

            frozen.tick(timedelta(minutes=2))
            assert tokens.is_valid(access, "alice") is False
            assert tokens.extract_subject(access) == "alice"

    def test_extract_subject_rejects_malformed(self, tokens):
        with pytest.raises(TokenMalformedError):
            tokens.extract_subject("not-a-jwt")

    def test_extract_subject_rejects_foreign_signature(self, app, tokens):
        token = tokens.issue_access("alice")
        app.config["JWT_SECRET_KEY"] = "another-secret-key-that-is-long-enough-for-hs256"

        with pytest.raises(TokenMalformedError):
            tokens.extract_subject(token)
        assert tokens.is_valid(token, "alice") is False
