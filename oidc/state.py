"""Anti-CSRF state for login attempts.

The state value travels to the provider and back in the query string; a
copy travels in a short-lived cookie. The cookie value is
``<state>.<issued_at>.<hmac>`` so expiry is enforced server side without
storing anything. An optional Valkey-backed guard makes each state
single-use across server instances.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timezone

import redis

from clients.valkey_client import ValkeyClient
from oidc.exceptions import StoreError
from oidc.types import IssuedState
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

STATE_BYTES = 32


class StateReplayGuard:
    """Records consumed states in Valkey until they would have expired anyway."""

    KEY_PREFIX = "oidc:state:"

    def __init__(self, valkey: ValkeyClient, ttl_seconds: int):
        self._valkey = valkey
        self._ttl_seconds = ttl_seconds

    def _key(self, state: str) -> str:
        digest = hashlib.sha256(state.encode("utf-8")).hexdigest()
        return f"{self.KEY_PREFIX}{digest}"

    def consume(self, state: str) -> bool:
        """Mark state used. Returns False if it was already used.

        Raises:
            StoreError: If Valkey is unreachable.
        """
        try:
            return self._valkey.set_if_absent(self._key(state), "1", self._ttl_seconds)
        except redis.RedisError as e:
            logger.error(f"State replay guard unavailable: {e}")
            raise StoreError("State replay guard unavailable") from e


class StateManager:
    """Issues and validates login attempt state."""

    def __init__(
        self,
        signing_secret: str,
        ttl_seconds: int,
        replay_guard: StateReplayGuard | None = None,
    ):
        self._secret = signing_secret.encode("utf-8")
        self._ttl_seconds = ttl_seconds
        self._replay_guard = replay_guard

    def _sign(self, state: str, issued_at: int) -> str:
        message = f"{state}.{issued_at}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def issue(self) -> IssuedState:
        """Generate a new state and the cookie value binding it to this browser."""
        state = secrets.token_urlsafe(STATE_BYTES)
        now = now_utc()
        issued_at = int(now.timestamp())
        cookie_value = f"{state}.{issued_at}.{self._sign(state, issued_at)}"

        return IssuedState(
            state=state,
            cookie_value=cookie_value,
            issued_at=now,
            max_age=self._ttl_seconds,
        )

    def validate(self, query_state: str | None, cookie_value: str | None) -> bool:
        """True iff both values are present, the cookie is authentic and
        unexpired, and it carries the same state as the query."""
        if not query_state or not cookie_value:
            return False

        parts = cookie_value.rsplit(".", 2)
        if len(parts) != 3:
            return False
        cookie_state, issued_at_raw, signature = parts

        try:
            issued_at = int(issued_at_raw)
        except ValueError:
            return False

        if not hmac.compare_digest(signature, self._sign(cookie_state, issued_at)):
            return False

        age = now_utc() - datetime.fromtimestamp(issued_at, tz=timezone.utc)
        if age.total_seconds() > self._ttl_seconds or age.total_seconds() < 0:
            return False

        return hmac.compare_digest(cookie_state.encode("utf-8"), query_state.encode("utf-8"))

    def consume(self, state: str) -> bool:
        """Invalidate state after use. Always True without a replay guard."""
        if self._replay_guard is None:
            return True
        return self._replay_guard.consume(state)
