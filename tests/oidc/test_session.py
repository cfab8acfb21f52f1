"""Tests for SessionIssuer - token signing and cookie attributes."""

from datetime import timedelta

import jwt
import pytest

from oidc.config import CookiePolicy
from oidc.session import SessionIssuer
from utils.timezone import now_utc

SECRET = "session-test-secret-0123456789abcdef"
CLAIMS = {"email": "a@b.com", "id": "1", "collection": "users", "bio": "hi"}


@pytest.fixture
def issuer():
    return SessionIssuer("cms-token")


class TestIssue:
    """Signed token and cookie construction."""

    def test_token_carries_claims(self, issuer):
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy())

        decoded = SessionIssuer.decode(cookie.value, SECRET)

        for key, value in CLAIMS.items():
            assert decoded[key] == value

    def test_token_expires_after_ttl(self, issuer):
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy())

        decoded = SessionIssuer.decode(cookie.value, SECRET)

        assert decoded["exp"] - decoded["iat"] == 3600

    def test_cookie_expiry_matches_ttl(self, issuer):
        before = now_utc()
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy())

        assert before + timedelta(seconds=3599) <= cookie.expires
        assert cookie.expires <= now_utc() + timedelta(seconds=3600)

    def test_cookie_name_and_path(self, issuer):
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy())

        assert cookie.name == "cms-token"
        assert cookie.path == "/"

    def test_cookie_always_http_only(self, issuer):
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy(secure=False))

        assert cookie.http_only is True

    def test_secure_defaults_true(self, issuer):
        assert issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy()).secure is True

    def test_policy_applied(self, issuer):
        policy = CookiePolicy(secure=False, same_site="strict", domain="cms.example.com")

        cookie = issuer.issue(CLAIMS, SECRET, 3600, policy)

        assert cookie.secure is False
        assert cookie.same_site == "strict"
        assert cookie.domain == "cms.example.com"

    def test_repr_hides_token(self, issuer):
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy())

        assert cookie.value not in repr(cookie)

    def test_claims_not_mutated(self, issuer):
        claims = dict(CLAIMS)

        issuer.issue(claims, SECRET, 3600, CookiePolicy())

        assert claims == CLAIMS


class TestDecode:
    """Verification of issued tokens."""

    def test_wrong_secret_rejected(self, issuer):
        cookie = issuer.issue(CLAIMS, SECRET, 3600, CookiePolicy())

        with pytest.raises(jwt.InvalidSignatureError):
            SessionIssuer.decode(cookie.value, "another-secret-0123456789abcdefgh")

    def test_expired_token_rejected(self):
        token = jwt.encode(
            {"email": "a@b.com", "exp": int((now_utc() - timedelta(seconds=5)).timestamp())},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(jwt.ExpiredSignatureError):
            SessionIssuer.decode(token, SECRET)
