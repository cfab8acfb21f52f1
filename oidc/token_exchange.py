"""
Authorization-code token exchange.

Form-encoded POST to the provider's token endpoint. Never retried: the
authorization code is single-use, so a retry would fail identically.
"""

import json
import logging

import requests
from pydantic import ValidationError

from oidc.exceptions import ExchangeTimeoutError, TokenExchangeError, TokenResponseError
from oidc.types import TokenResponse

logger = logging.getLogger(__name__)


class TokenExchangeClient:
    """Exchange authorization codes for tokens."""

    def __init__(self, timeout_seconds: float = 10.0, session: requests.Session | None = None):
        """
        Args:
            timeout_seconds: Connect and read timeout for the token request
            session: Optional requests session (connection reuse)
        """
        self._timeout = timeout_seconds
        self._http = session or requests.Session()

    def exchange(
        self,
        code: str,
        redirect_uri: str,
        client_id: str,
        client_secret: str,
        token_endpoint: str,
    ) -> TokenResponse:
        """
        Exchange an authorization code for tokens.

        Raises:
            ExchangeTimeoutError: Token endpoint did not answer in time
            TokenExchangeError: Transport failure or non-2xx response
            TokenResponseError: 2xx response without a usable access_token
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        headers = {"Accept": "application/json"}

        try:
            response = self._http.post(
                token_endpoint,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Token endpoint timed out after {self._timeout}s")
            raise ExchangeTimeoutError("Token endpoint timed out") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Token endpoint connection failed: {type(e).__name__}")
            raise TokenExchangeError("Token endpoint connection failed") from e

        if not response.ok:
            logger.error(
                f"Token endpoint returned {response.status_code}: {response.text[:1000]}"
            )
            raise TokenExchangeError(
                f"Token endpoint returned {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            logger.error("Token endpoint returned a non-JSON body")
            raise TokenResponseError("Token response is not JSON")

        if not isinstance(payload, dict):
            raise TokenResponseError("Token response is not an object")

        try:
            return TokenResponse.model_validate(payload)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            logger.error(f"Token response invalid, fields: {fields}")
            raise TokenResponseError("Token response missing access_token") from e
