"""Typed exceptions for OIDC login failures.

Every exception carries the failure ``reason`` recorded in the login state
machine and the HTTP status the callback answers with.
"""


class OIDCError(Exception):
    """Base class for all login flow failures."""

    reason = "login_failed"
    status_code = 500
    failed_at = None


class ConfigurationError(OIDCError):
    """Required setting or collaborator missing. Fatal, never retried."""

    reason = "unconfigured"
    status_code = 500


class CsrfError(OIDCError):
    """
    State parameter missing, mismatched, expired, or replayed.

    The attempt is abandoned and the user must restart login.
    """

    reason = "invalid_state"
    status_code = 400


class ProtocolError(OIDCError):
    """Callback or provider response does not follow the protocol."""

    reason = "protocol_error"
    status_code = 400


class MissingCodeError(ProtocolError):
    reason = "missing_code"


class ProviderDeniedError(ProtocolError):
    """Provider redirected back with an ``error`` parameter."""

    reason = "provider_error"

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        super().__init__(f"Provider returned error: {error}")


class MissingEmailError(ProtocolError):
    """Identity claims lack an email address, the join key for local users."""

    reason = "no_email"


class TokenResponseError(ProtocolError):
    """Token endpoint answered 2xx with an unusable body."""

    reason = "invalid_token_response"
    status_code = 500


class UpstreamError(OIDCError):
    """Identity provider unreachable or answered with an error."""

    reason = "upstream_error"
    status_code = 502


class TokenExchangeError(UpstreamError):
    """
    Token endpoint rejected the authorization code.

    Carries the provider's raw body for server-side diagnostics only.
    Never retried: the authorization code is single-use.
    """

    reason = "exchange_error"

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        self.status = status
        self.body = body
        super().__init__(message)


class ExchangeTimeoutError(UpstreamError):
    reason = "exchange_timeout"


class UserinfoError(UpstreamError):
    reason = "userinfo_error"


class StoreError(OIDCError):
    """User store lookup or create failed. Safe to retry the whole login."""

    reason = "store_error"
    status_code = 500


class StoreTimeoutError(StoreError):
    reason = "store_timeout"


class DuplicateUserError(StoreError):
    """
    Create lost a race against a concurrent create for the same email.

    Internal to find-or-create: the resolver re-reads the winning record.
    """

    reason = "duplicate_user"
