"""Authorization redirect URL construction."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def build_authorization_url(
    authorization_endpoint: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
) -> str:
    """Build the provider authorization URL for the code flow.

    Query parameters already present on the endpoint are preserved;
    the flow parameters take precedence over any of the same name.
    """
    scheme, netloc, path, query, fragment = urlsplit(authorization_endpoint)

    params = dict(parse_qsl(query, keep_blank_values=True))
    params.update(
        {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "state": state,
        }
    )

    return urlunsplit((scheme, netloc, path, urlencode(params), fragment))
