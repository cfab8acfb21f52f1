"""Tests for oidc/exceptions.py - error taxonomy and HTTP mapping."""

import pytest

from oidc.exceptions import (
    OIDCError,
    ConfigurationError,
    CsrfError,
    ProtocolError,
    MissingCodeError,
    ProviderDeniedError,
    MissingEmailError,
    TokenResponseError,
    UpstreamError,
    TokenExchangeError,
    ExchangeTimeoutError,
    UserinfoError,
    StoreError,
    StoreTimeoutError,
    DuplicateUserError,
)


class TestExceptionInheritance:
    """All login exceptions inherit from OIDCError via their category."""

    @pytest.mark.parametrize(
        "exc_class,category",
        [
            (ConfigurationError, OIDCError),
            (CsrfError, OIDCError),
            (MissingCodeError, ProtocolError),
            (ProviderDeniedError, ProtocolError),
            (MissingEmailError, ProtocolError),
            (TokenResponseError, ProtocolError),
            (TokenExchangeError, UpstreamError),
            (ExchangeTimeoutError, UpstreamError),
            (UserinfoError, UpstreamError),
            (StoreTimeoutError, StoreError),
            (DuplicateUserError, StoreError),
        ],
    )
    def test_category(self, exc_class, category):
        assert issubclass(exc_class, category)
        assert issubclass(exc_class, OIDCError)


class TestStatusMapping:
    """Reasons and statuses surfaced by the callback."""

    @pytest.mark.parametrize(
        "exc,reason,status",
        [
            (CsrfError("x"), "invalid_state", 400),
            (MissingCodeError("x"), "missing_code", 400),
            (MissingEmailError("x"), "no_email", 400),
            (ProviderDeniedError("access_denied"), "provider_error", 400),
            (TokenResponseError("x"), "invalid_token_response", 500),
            (TokenExchangeError("x"), "exchange_error", 502),
            (ExchangeTimeoutError("x"), "exchange_timeout", 502),
            (UserinfoError("x"), "userinfo_error", 502),
            (ConfigurationError("x"), "unconfigured", 500),
            (StoreError("x"), "store_error", 500),
            (StoreTimeoutError("x"), "store_timeout", 500),
        ],
    )
    def test_reason_and_status(self, exc, reason, status):
        assert exc.reason == reason
        assert exc.status_code == status


class TestTokenExchangeError:
    """TokenExchangeError carries provider diagnostics."""

    def test_stores_status_and_body(self):
        err = TokenExchangeError("rejected", status=400, body='{"error":"invalid_grant"}')

        assert err.status == 400
        assert "invalid_grant" in err.body

    def test_body_not_in_message(self):
        err = TokenExchangeError("rejected", status=400, body="provider internals")

        assert "provider internals" not in str(err)


class TestProviderDeniedError:
    def test_stores_error_and_description(self):
        err = ProviderDeniedError("access_denied", "User cancelled")

        assert err.error == "access_denied"
        assert err.description == "User cancelled"
        assert "access_denied" in str(err)
