"""
Userinfo mapping.

The login service asks an integrator-supplied mapper to turn an access
token into IdentityClaims. UserinfoClient is a ready-made mapper backed
by the provider's standard userinfo endpoint.
"""

import json
import logging
from typing import Any, Callable

import requests

from oidc.exceptions import UserinfoError
from oidc.types import IdentityClaims

logger = logging.getLogger(__name__)

UserinfoMapper = Callable[[str], "IdentityClaims | dict[str, Any]"]


def claims_from_userinfo(data: dict[str, Any]) -> IdentityClaims:
    """Map standard OIDC userinfo claims onto IdentityClaims."""
    email = data.get("email")
    return IdentityClaims(
        subject=str(data["sub"]) if data.get("sub") is not None else None,
        issuer=data.get("iss"),
        email=email.strip() if isinstance(email, str) and email.strip() else None,
        display_name=data.get("name") or data.get("preferred_username"),
        given_name=data.get("given_name"),
        family_name=data.get("family_name"),
        picture=data.get("picture"),
    )


class UserinfoClient:
    """Fetch identity claims from an OIDC userinfo endpoint."""

    def __init__(
        self,
        userinfo_endpoint: str,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ):
        if not userinfo_endpoint:
            raise ValueError("userinfo_endpoint is required")

        self.userinfo_endpoint = userinfo_endpoint
        self._timeout = timeout_seconds
        self._http = session or requests.Session()

    def __call__(self, access_token: str) -> IdentityClaims:
        """
        Raises:
            UserinfoError: On transport failure, non-2xx, or non-JSON body
        """
        try:
            response = self._http.get(
                self.userinfo_endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Userinfo request failed: {type(e).__name__}")
            raise UserinfoError("Userinfo endpoint unreachable") from e

        if not response.ok:
            logger.error(f"Userinfo endpoint returned {response.status_code}")
            raise UserinfoError(f"Userinfo endpoint returned {response.status_code}")

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError):
            raise UserinfoError("Userinfo response is not JSON")

        if not isinstance(data, dict):
            raise UserinfoError("Userinfo response is not an object")

        return claims_from_userinfo(data)
