"""Pydantic models for the OIDC login domain."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class LoginState(Enum):
    """States of the callback state machine."""

    START = "start"
    REDIRECTED = "redirected"
    CALLBACK_RECEIVED = "callback_received"
    STATE_VALIDATED = "state_validated"
    CODE_EXCHANGED = "code_exchanged"
    USER_RESOLVED = "user_resolved"
    CLAIMS_PROJECTED = "claims_projected"
    SESSION_ISSUED = "session_issued"
    RESPONSE_SENT = "response_sent"
    FAILED = "failed"


class IssuedState(BaseModel):
    """A freshly issued login attempt: the state and the cookie binding it."""

    state: str = Field(..., description="Opaque value sent to the provider")
    cookie_value: str = Field(..., description="Signed state cookie value")
    issued_at: datetime
    max_age: int = Field(..., description="Cookie lifetime in seconds")


class TokenResponse(BaseModel):
    """Successful token endpoint response."""

    access_token: str = Field(..., min_length=1, repr=False)
    token_type: str = "Bearer"
    expires_in: int | None = None
    id_token: str | None = Field(default=None, repr=False)
    refresh_token: str | None = Field(default=None, repr=False)
    scope: str | None = None

    model_config = {"extra": "ignore"}


class IdentityClaims(BaseModel):
    """Verified identity returned by the provider."""

    subject: str | None = None
    issuer: str | None = None
    email: str | None = None
    display_name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None

    model_config = {"frozen": True}


class LocalUser(BaseModel):
    """
    CMS-side account.

    Host collections may define arbitrary additional fields; they are kept
    as extra attributes so session claims can be projected from them.
    """

    id: str
    email: str
    collection: str
    subject: str | None = None
    issuer: str | None = None
    display_name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None
    created_at: datetime | None = None

    model_config = {"extra": "allow"}

    def to_record(self) -> dict[str, Any]:
        """Flat JSON-compatible field mapping, including host-defined fields."""
        return self.model_dump(mode="json")


class SessionCookie(BaseModel):
    """Session cookie as emitted in Set-Cookie."""

    name: str
    value: str = Field(..., repr=False)
    path: str = "/"
    http_only: Literal[True] = True
    secure: bool = True
    same_site: Literal["lax", "strict", "none"] = "lax"
    domain: str | None = None
    expires: datetime
