"""Security event logging for the login audit trail.

Append-only log to the security_events table. Details are redacted
before they are written: tokens, codes and secrets never reach storage.
"""

from enum import Enum
from typing import Any

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

REDACTED_KEYS = frozenset(
    {
        "access_token",
        "id_token",
        "refresh_token",
        "token",
        "code",
        "client_secret",
        "signing_secret",
        "secret",
        "password",
        "state",
        "body",
    }
)


class SecurityEvent(Enum):
    """Login security event types."""

    LOGIN_STARTED = "login_started"
    STATE_REJECTED = "state_rejected"
    PROVIDER_DENIED = "provider_denied"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    USERINFO_FAILED = "userinfo_failed"
    USER_CREATED = "user_created"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"


def redact(details: dict[str, Any]) -> dict[str, Any]:
    """Drop secret-bearing keys, recursing into nested dicts."""
    clean = {}
    for key, value in details.items():
        if key.lower() in REDACTED_KEYS:
            continue
        if isinstance(value, dict):
            value = redact(value)
        clean[key] = value
    return clean


class SecurityLogger:
    """Append-only security event logger."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        user_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log security event to database."""
        details = redact(details) if details else None
        self._db.execute_returning(
            """INSERT INTO security_events
               (event_type, email, user_id, ip_address, user_agent, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                email,
                user_id,
                ip_address,
                user_agent,
                Json(details) if details else None,
                now_utc(),
            ),
        )
