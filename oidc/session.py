"""Session token signing and cookie construction.

Sessions are stateless: claims are signed (HS256) into a JWT carried by
an HttpOnly cookie. Nothing is stored server side.
"""

from datetime import timedelta
from typing import Any

import jwt

from oidc.config import CookiePolicy
from oidc.types import SessionCookie
from utils.timezone import now_utc

ALGORITHM = "HS256"


class SessionIssuer:
    """Signs session claims and builds the session cookie."""

    def __init__(self, cookie_name: str):
        self._cookie_name = cookie_name

    def issue(
        self,
        claims: dict[str, Any],
        signing_secret: str,
        ttl_seconds: int,
        cookie_policy: CookiePolicy,
    ) -> SessionCookie:
        """Sign claims with expiry ttl_seconds from now and wrap them in a cookie."""
        now = now_utc()
        expires = now + timedelta(seconds=ttl_seconds)

        payload = dict(claims)
        payload["iat"] = int(now.timestamp())
        payload["exp"] = int(expires.timestamp())

        token = jwt.encode(payload, signing_secret, algorithm=ALGORITHM)

        return SessionCookie(
            name=self._cookie_name,
            value=token,
            path="/",
            http_only=True,
            secure=cookie_policy.secure,
            same_site=cookie_policy.same_site,
            domain=cookie_policy.domain or None,
            expires=expires,
        )

    @staticmethod
    def decode(token: str, signing_secret: str) -> dict[str, Any]:
        """Verify signature and expiry, return claims.

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired.
        """
        return jwt.decode(token, signing_secret, algorithms=[ALGORITHM])
