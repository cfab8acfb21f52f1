"""OIDC login service - orchestrates the authorization-code flow."""

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from clients.valkey_client import ValkeyClient
from oidc.claims import project_claims
from oidc.config import OIDCConfig
from oidc.exceptions import (
    ConfigurationError,
    CsrfError,
    MissingCodeError,
    OIDCError,
    ProviderDeniedError,
    TokenResponseError,
    UpstreamError,
    UserinfoError,
)
from oidc.redirect import build_authorization_url
from oidc.schema import GroupField, LeafField, parse_field_schema
from oidc.security_logger import SecurityEvent, SecurityLogger
from oidc.session import SessionIssuer
from oidc.state import StateManager, StateReplayGuard
from oidc.token_exchange import TokenExchangeClient
from oidc.types import IdentityClaims, IssuedState, LocalUser, LoginState, SessionCookie
from oidc.user_resolver import UserResolver, UserStore
from oidc.userinfo import UserinfoClient, UserinfoMapper, claims_from_userinfo

logger = logging.getLogger(__name__)


@dataclass
class LoginRedirect:
    """Where to send the browser, and the state cookie to set."""

    url: str
    state: IssuedState


@dataclass
class LoginResult:
    """Outcome of a successful callback."""

    user: LocalUser
    claims: dict[str, Any]
    cookie: SessionCookie
    created: bool
    redirect_to: str | None
    state: LoginState = LoginState.RESPONSE_SENT


class OIDCLoginService:
    """Orchestrates OIDC login.

    Redirect: issue state, build authorization URL.

    Callback, strictly in order:
    1. Validate state (before anything touches the provider)
    2. Require code, exchange it for tokens
    3. Map access token to identity claims
    4. Find-or-create local user
    5. Project session claims, sign session cookie

    Every failure raises an OIDCError tagged with the state it failed in.
    """

    def __init__(
        self,
        config: OIDCConfig,
        state_manager: StateManager,
        token_client: TokenExchangeClient,
        user_resolver: UserResolver,
        session_issuer: SessionIssuer,
        fields: Sequence[LeafField | GroupField],
        userinfo_mapper: UserinfoMapper | None = None,
        security_logger: SecurityLogger | None = None,
    ):
        self._config = config
        self._state_manager = state_manager
        self._token_client = token_client
        self._user_resolver = user_resolver
        self._session_issuer = session_issuer
        self._fields = list(fields)
        self._userinfo_mapper = userinfo_mapper
        self._security_logger = security_logger

    @property
    def config(self) -> OIDCConfig:
        return self._config

    def _require_configured(self) -> None:
        missing = self._config.missing_settings()
        if missing:
            logger.error(f"OIDC login is not configured, missing: {', '.join(missing)}")
            raise ConfigurationError(f"Missing settings: {', '.join(missing)}")

    def _advance(self, current: LoginState, target: LoginState) -> LoginState:
        logger.debug(f"OIDC login {current.value} -> {target.value}")
        return target

    def _audit(self, event: SecurityEvent, **kwargs) -> None:
        if self._security_logger is not None:
            self._security_logger.log(event, **kwargs)

    def begin_login(
        self,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginRedirect:
        """START -> REDIRECTED.

        Raises:
            ConfigurationError: If client credentials or signing secret are missing.
        """
        self._require_configured()

        issued = self._state_manager.issue()
        url = build_authorization_url(
            authorization_endpoint=self._config.authorization_endpoint,
            client_id=self._config.client_id,
            redirect_uri=self._config.redirect_uri,
            scope=self._config.scope,
            state=issued.state,
        )
        self._advance(LoginState.START, LoginState.REDIRECTED)

        self._audit(
            SecurityEvent.LOGIN_STARTED,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return LoginRedirect(url=url, state=issued)

    def _map_identity(self, access_token: str) -> IdentityClaims:
        if self._userinfo_mapper is None:
            raise ConfigurationError("Userinfo mapper is not configured")

        try:
            mapped = self._userinfo_mapper(access_token)
        except OIDCError:
            raise
        except Exception as e:
            logger.error(f"Userinfo mapper failed: {type(e).__name__}")
            raise UserinfoError(f"Userinfo mapper raised {type(e).__name__}") from e

        if isinstance(mapped, IdentityClaims):
            return mapped
        if isinstance(mapped, dict):
            return claims_from_userinfo(mapped)
        raise UserinfoError(f"Userinfo mapper returned {type(mapped).__name__}")

    def complete_login(
        self,
        query_state: str | None,
        cookie_state: str | None,
        code: str | None,
        error: str | None = None,
        error_description: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        """CALLBACK_RECEIVED -> ... -> RESPONSE_SENT.

        Raises:
            OIDCError: Subclass naming the failure; ``failed_at`` holds the
                state the flow was in.
        """
        state = LoginState.CALLBACK_RECEIVED
        email = None

        try:
            self._require_configured()

            if not self._state_manager.validate(query_state, cookie_state):
                raise CsrfError("State missing, mismatched, or expired")
            if not self._state_manager.consume(query_state):
                raise CsrfError("State already used")
            state = self._advance(state, LoginState.STATE_VALIDATED)

            if error:
                raise ProviderDeniedError(error, error_description)
            if not code:
                raise MissingCodeError("Callback has no code parameter")

            tokens = self._token_client.exchange(
                code=code,
                redirect_uri=self._config.redirect_uri,
                client_id=self._config.client_id,
                client_secret=self._config.client_secret.get_secret_value(),
                token_endpoint=self._config.token_endpoint,
            )
            state = self._advance(state, LoginState.CODE_EXCHANGED)

            identity = self._map_identity(tokens.access_token)
            email = identity.email
            user, created = self._user_resolver.find_or_create(identity)
            state = self._advance(state, LoginState.USER_RESOLVED)

            if created:
                self._audit(
                    SecurityEvent.USER_CREATED,
                    email=user.email,
                    user_id=user.id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"collection": user.collection, "issuer": identity.issuer},
                )

            claims = project_claims(
                self._fields,
                user.to_record(),
                self._config.user_collection_slug,
            )
            state = self._advance(state, LoginState.CLAIMS_PROJECTED)

            cookie = self._session_issuer.issue(
                claims,
                signing_secret=self._config.signing_secret.get_secret_value(),
                ttl_seconds=self._config.token_ttl_seconds,
                cookie_policy=self._config.cookie_policy,
            )
            state = self._advance(state, LoginState.SESSION_ISSUED)

        except OIDCError as e:
            e.failed_at = state
            self._record_failure(e, state, email, ip_address, user_agent)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in OIDC login state {state.value}")
            failure = OIDCError(f"Unexpected {type(e).__name__}")
            failure.failed_at = state
            self._record_failure(failure, state, email, ip_address, user_agent)
            raise failure from e

        self._audit(
            SecurityEvent.LOGIN_SUCCEEDED,
            email=user.email,
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(f"OIDC login succeeded for user {user.id} in {user.collection}")

        return LoginResult(
            user=user,
            claims=claims,
            cookie=cookie,
            created=created,
            redirect_to=self._config.redirect_path_after_login,
            state=self._advance(state, LoginState.RESPONSE_SENT),
        )

    def _record_failure(
        self,
        error: OIDCError,
        state: LoginState,
        email: str | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        logger.warning(
            f"OIDC login failed in state {state.value}: {error.reason} ({type(error).__name__})"
        )

        if isinstance(error, CsrfError):
            event = SecurityEvent.STATE_REJECTED
        elif isinstance(error, ProviderDeniedError):
            event = SecurityEvent.PROVIDER_DENIED
        elif isinstance(error, UserinfoError):
            event = SecurityEvent.USERINFO_FAILED
        elif isinstance(error, (UpstreamError, TokenResponseError)):
            event = SecurityEvent.TOKEN_EXCHANGE_FAILED
        else:
            event = SecurityEvent.LOGIN_FAILED

        details = {"reason": error.reason, "failed_at": state.value}
        if isinstance(error, ProviderDeniedError):
            details["provider_error"] = error.error

        self._audit(
            event,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            details=details,
        )


def build_login_service(
    config: OIDCConfig,
    user_store: UserStore,
    field_schema: list[dict[str, Any]],
    userinfo_mapper: UserinfoMapper | None = None,
    security_logger: SecurityLogger | None = None,
    valkey: ValkeyClient | None = None,
) -> OIDCLoginService:
    """Wire a login service from configuration.

    Falls back to UserinfoClient when no mapper is given but the config
    names a userinfo endpoint. A Valkey client enables single-use state.
    """
    if userinfo_mapper is None and config.userinfo_endpoint:
        userinfo_mapper = UserinfoClient(
            config.userinfo_endpoint,
            timeout_seconds=config.http_timeout_seconds,
        )

    replay_guard = (
        StateReplayGuard(valkey, config.state_ttl_seconds) if valkey is not None else None
    )

    return OIDCLoginService(
        config=config,
        state_manager=StateManager(
            config.signing_secret.get_secret_value(),
            config.state_ttl_seconds,
            replay_guard=replay_guard,
        ),
        token_client=TokenExchangeClient(timeout_seconds=config.http_timeout_seconds),
        user_resolver=UserResolver(user_store, config.user_collection_slug),
        session_issuer=SessionIssuer(config.session_cookie_name),
        fields=parse_field_schema(field_schema),
        userinfo_mapper=userinfo_mapper,
        security_logger=security_logger,
    )
