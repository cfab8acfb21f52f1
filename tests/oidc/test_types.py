"""Tests for oidc/types.py - Pydantic models for the login domain."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from oidc.types import IdentityClaims, LocalUser, SessionCookie, TokenResponse
from utils.timezone import now_utc


class TestTokenResponseValidation:
    def test_rejects_missing_access_token(self):
        with pytest.raises(ValidationError):
            TokenResponse(token_type="Bearer")

    def test_rejects_empty_access_token(self):
        with pytest.raises(ValidationError):
            TokenResponse(access_token="")

    def test_ignores_unknown_fields(self):
        tokens = TokenResponse.model_validate({"access_token": "at", "ext_expires_in": 10})

        assert tokens.access_token == "at"


class TestIdentityClaims:
    def test_immutable(self):
        claims = IdentityClaims(email="a@b.com")

        with pytest.raises(ValidationError):
            claims.email = "c@d.com"


class TestLocalUser:
    def test_host_fields_kept_in_record(self):
        user = LocalUser(id="1", email="a@b.com", collection="users", bio="hi")

        record = user.to_record()

        assert record["bio"] == "hi"
        assert record["id"] == "1"

    def test_record_is_json_compatible(self):
        created = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        user = LocalUser(id="1", email="a@b.com", collection="users", created_at=created, joined=created)

        record = user.to_record()

        assert isinstance(record["created_at"], str)
        assert isinstance(record["joined"], str)
        assert record["created_at"].startswith("2026-03-01T12:00:00")

    def test_rejects_missing_id(self):
        with pytest.raises(ValidationError):
            LocalUser(email="a@b.com", collection="users")


class TestSessionCookie:
    def test_http_only_cannot_be_disabled(self):
        with pytest.raises(ValidationError):
            SessionCookie(name="cms-token", value="t", http_only=False, expires=now_utc())
