"""Shared test fixtures for the OIDC login test suite."""

import threading
from typing import Any
from uuid import uuid4

import pytest

from oidc.config import CookiePolicy, OIDCConfig
from oidc.exceptions import DuplicateUserError
from oidc.types import LocalUser
from utils.timezone import now_utc


# =============================================================================
# TEST CONSTANTS
# =============================================================================

AUTHORIZATION_ENDPOINT = "https://idp.test.local/authorize"
TOKEN_ENDPOINT = "https://idp.test.local/token"
USERINFO_ENDPOINT = "https://idp.test.local/userinfo"
REDIRECT_URI = "https://cms.test.local/api/oidc/callback"
SIGNING_SECRET = "test-signing-secret-0123456789abcdef"
CLIENT_SECRET = "test-client-secret"

TEST_USER_EMAIL = "testuser@test.local"

FIELD_SCHEMA = [
    {"name": "email", "type": "email"},
    {"name": "role", "type": "select", "saveToJWT": True},
    {"name": "nickname", "type": "text"},
    {
        "name": "profile",
        "type": "group",
        "fields": [
            {"name": "bio", "type": "textarea", "saveToJWT": True},
            {"name": "website", "type": "text"},
        ],
    },
]


# =============================================================================
# USER STORE
# =============================================================================


class InMemoryUserStore:
    """UserStore keyed by (collection, email), with call counters."""

    def __init__(self):
        self._users: dict[tuple[str, str], LocalUser] = {}
        self._lock = threading.Lock()
        self.find_calls = 0
        self.create_calls = 0
        self.created_fields: list[dict[str, Any]] = []

    def add(self, collection: str, email: str, **extra) -> LocalUser:
        user = LocalUser(
            id=str(uuid4()),
            email=email,
            collection=collection,
            created_at=now_utc(),
            **extra,
        )
        self._users[(collection, email)] = user
        return user

    def find_by_email(self, collection: str, email: str) -> LocalUser | None:
        self.find_calls += 1
        return self._users.get((collection, email))

    def create(self, collection: str, fields: dict[str, Any]) -> LocalUser:
        self.create_calls += 1
        self.created_fields.append(fields)
        with self._lock:
            key = (collection, fields["email"])
            if key in self._users:
                raise DuplicateUserError("exists")
            user = LocalUser(
                id=str(uuid4()),
                collection=collection,
                created_at=now_utc(),
                **{k: v for k, v in fields.items() if k != "password"},
            )
            self._users[key] = user
            return user

    @property
    def calls(self) -> int:
        return self.find_calls + self.create_calls

    def __len__(self) -> int:
        return len(self._users)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def config() -> OIDCConfig:
    """Fully configured login settings."""
    return OIDCConfig(
        authorization_endpoint=AUTHORIZATION_ENDPOINT,
        token_endpoint=TOKEN_ENDPOINT,
        userinfo_endpoint=USERINFO_ENDPOINT,
        client_id="cms-client",
        client_secret=CLIENT_SECRET,
        redirect_uri=REDIRECT_URI,
        signing_secret=SIGNING_SECRET,
        cookie_prefix="cms",
        cookie_policy=CookiePolicy(secure=True, same_site="lax"),
        token_ttl_seconds=3600,
    )


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def field_schema() -> list[dict[str, Any]]:
    return FIELD_SCHEMA
