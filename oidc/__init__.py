"""OIDC authorization-code login."""

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
from oidc.types import (
    LoginState,
    IssuedState,
    TokenResponse,
    IdentityClaims,
    LocalUser,
    SessionCookie,
)
from oidc.config import OIDCConfig, CookiePolicy, config_from_vault
from oidc.schema import LeafField, GroupField, parse_field_schema
from oidc.claims import project_claims
from oidc.state import StateManager, StateReplayGuard
from oidc.redirect import build_authorization_url
from oidc.token_exchange import TokenExchangeClient
from oidc.userinfo import UserinfoClient, claims_from_userinfo
from oidc.user_resolver import UserResolver, UserStore
from oidc.database import PostgresUserStore
from oidc.session import SessionIssuer
from oidc.security_logger import SecurityLogger, SecurityEvent
from oidc.service import OIDCLoginService, LoginRedirect, LoginResult, build_login_service
from oidc.api import create_oidc_router
