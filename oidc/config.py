"""OIDC login configuration."""

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr

from clients.vault_client import get_oidc_secrets

DEFAULT_CALLBACK_PATH = "/api/oidc/callback"


class CookiePolicy(BaseModel):
    """Security attributes applied to the session cookie."""

    secure: bool = Field(
        default=True,
        description="Send cookie over HTTPS only. Disable for local development only.",
    )
    same_site: Literal["lax", "strict", "none"] = Field(
        default="lax",
        description="SameSite attribute of the session cookie",
    )
    domain: str | None = Field(
        default=None,
        description="Cookie domain (host-only cookie when unset)",
    )


class OIDCConfig(BaseModel):
    """
    OIDC authorization-code login configuration.

    Client credentials and the signing secret may be left empty at
    construction (e.g. while Vault is unreachable); the login service
    rejects the first request with a ConfigurationError instead.
    """

    # Identity provider
    authorization_endpoint: str = Field(..., description="Provider authorization URL")
    token_endpoint: str = Field(..., description="Provider token URL")
    userinfo_endpoint: str | None = Field(
        default=None,
        description="Provider userinfo URL (used by UserinfoClient)",
    )
    client_id: str = Field(default="", description="OAuth2 client identifier")
    client_secret: SecretStr = Field(default=SecretStr(""), description="OAuth2 client secret")
    redirect_uri: str = Field(..., description="Absolute callback URL registered at the provider")
    scope: str = Field(default="openid email profile", description="Space-separated scopes")

    # Routes
    init_path: str = Field(default="/api/oidc/authorize", description="Login redirect route")
    callback_path_override: str | None = Field(
        default=None,
        alias="callback_path",
        description="Callback route (derived from redirect_uri when unset)",
    )
    redirect_path_after_login: str | None = Field(
        default="/admin",
        description="Where to send the browser after login; None answers 200 instead",
    )

    # Users and session
    user_collection_slug: str = Field(default="users", description="User collection to resolve into")
    cookie_prefix: str = Field(default="cms", description="Session cookie is named <prefix>-token")
    cookie_policy: CookiePolicy = Field(default_factory=CookiePolicy)
    token_ttl_seconds: int = Field(
        default=7200,
        description="Session token and cookie lifetime",
        ge=60,
        le=2592000,  # 30 days
    )
    signing_secret: SecretStr = Field(default=SecretStr(""), description="HS256 session signing key")

    # Login attempt
    state_cookie_name: str = Field(default="oidc_state", description="Anti-CSRF state cookie name")
    state_ttl_seconds: int = Field(
        default=300,
        description="How long a login attempt may take between redirect and callback",
        ge=60,
        le=900,
    )

    # Upstream
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for token and userinfo requests",
        gt=0,
        le=60,
    )

    model_config = {"populate_by_name": True}

    @property
    def callback_path(self) -> str:
        """Explicit callback path, else the path of redirect_uri, else the default."""
        if self.callback_path_override:
            return self.callback_path_override
        path = urlparse(self.redirect_uri).path
        return path or DEFAULT_CALLBACK_PATH

    @property
    def session_cookie_name(self) -> str:
        return f"{self.cookie_prefix}-token"

    def missing_settings(self) -> list[str]:
        """Names of required secrets that are empty."""
        missing = []
        if not self.client_id:
            missing.append("client_id")
        if not self.client_secret.get_secret_value():
            missing.append("client_secret")
        if not self.signing_secret.get_secret_value():
            missing.append("signing_secret")
        return missing


def config_from_vault(**settings) -> OIDCConfig:
    """Build config with client credentials and signing secret from Vault.

    Explicit settings win over Vault values.
    """
    return OIDCConfig(**{**get_oidc_secrets(), **settings})
