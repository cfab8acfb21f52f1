"""
Valkey (Redis-compatible) client for single-use login state.

Simple wrapper around redis-py. Connection URL from Vault.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        first_use = client.set_if_absent("oidc:state:abc", "1", expire_seconds=300)
    """

    def __init__(self, url: str, timeout_seconds: float = 5.0):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)
            timeout_seconds: Socket connect and read timeout

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Returns True if Valkey responds.
        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def set_if_absent(self, key: str, value: str, expire_seconds: int) -> bool:
        """
        Atomically set key only if it does not exist (SET NX EX).

        Returns True if the key was set, False if it already existed.
        """
        return bool(self._client.set(key, value, nx=True, ex=expire_seconds))

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
