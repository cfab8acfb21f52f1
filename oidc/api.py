"""HTTP routes for OIDC login."""

import ipaddress

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from api.base import ErrorCodes, error_response, success_response
from api.middleware import get_request_id
from oidc.exceptions import OIDCError
from oidc.service import OIDCLoginService
from oidc.types import SessionCookie

# Reason -> (error code, client-facing message). Never echo provider bodies.
_FAILURES = {
    "unconfigured": (ErrorCodes.NOT_CONFIGURED, "Login is not configured"),
    "invalid_state": (ErrorCodes.INVALID_STATE, "Login attempt is invalid or expired. Please sign in again."),
    "missing_code": (ErrorCodes.MISSING_CODE, "Authorization code is required"),
    "provider_error": (ErrorCodes.PROVIDER_DENIED, "Identity provider did not authorize the login"),
    "no_email": (ErrorCodes.MISSING_EMAIL, "Identity provider did not supply an email address"),
    "invalid_token_response": (ErrorCodes.INVALID_TOKEN_RESPONSE, "Identity provider returned an invalid response"),
    "exchange_error": (ErrorCodes.UPSTREAM_ERROR, "Could not complete login with the identity provider"),
    "exchange_timeout": (ErrorCodes.UPSTREAM_TIMEOUT, "Identity provider did not respond in time"),
    "userinfo_error": (ErrorCodes.UPSTREAM_ERROR, "Could not fetch identity from the identity provider"),
    "store_error": (ErrorCodes.STORE_ERROR, "Could not load user account. Please try again."),
    "store_timeout": (ErrorCodes.STORE_ERROR, "Could not load user account. Please try again."),
}


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def _failure_response(error: OIDCError, request: Request) -> JSONResponse:
    code, message = _FAILURES.get(
        error.reason,
        (ErrorCodes.INTERNAL_ERROR, "Login failed"),
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error_response(code, message, get_request_id(request)).model_dump(mode="json"),
    )


def _set_session_cookie(response: Response, cookie: SessionCookie) -> None:
    response.set_cookie(
        key=cookie.name,
        value=cookie.value,
        expires=cookie.expires,
        path=cookie.path,
        domain=cookie.domain,
        secure=cookie.secure,
        httponly=True,
        samesite=cookie.same_site,
    )


def create_oidc_router(login_service: OIDCLoginService) -> APIRouter:
    """Create OIDC router with injected service.

    Routes are registered at the configured init and callback paths.
    """
    config = login_service.config
    router = APIRouter(tags=["oidc"])

    def _clear_state_cookie(response: Response) -> None:
        response.delete_cookie(
            key=config.state_cookie_name,
            path="/",
            secure=True,
            httponly=True,
            samesite="lax",
        )

    @router.get(config.init_path)
    def begin_login(request: Request):
        """Redirect browser to the identity provider.

        Sets the state cookie binding the callback to this browser.
        """
        try:
            redirect = login_service.begin_login(
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except OIDCError as e:
            return _failure_response(e, request)

        response = RedirectResponse(redirect.url, status_code=302)
        response.set_cookie(
            key=config.state_cookie_name,
            value=redirect.state.cookie_value,
            max_age=redirect.state.max_age,
            path="/",
            secure=True,
            httponly=True,
            samesite="lax",
        )
        return response

    @router.get(config.callback_path)
    def login_callback(
        request: Request,
        code: str = Query(None),
        state: str = Query(None),
        error: str = Query(None),
        error_description: str = Query(None),
    ):
        """Complete login: validate state, exchange code, set session cookie.

        Returns:
            - 302 to the post-login path, or 200 with the user if none is configured
            - 400 on invalid state, missing code, provider error, missing email
            - 500/502 on exchange, store, or configuration failures
        """
        try:
            result = login_service.complete_login(
                query_state=state,
                cookie_state=request.cookies.get(config.state_cookie_name),
                code=code,
                error=error,
                error_description=error_description,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except OIDCError as e:
            response = _failure_response(e, request)
            _clear_state_cookie(response)
            return response

        if result.redirect_to:
            response = RedirectResponse(result.redirect_to, status_code=302)
        else:
            response = JSONResponse(
                content=success_response({
                    "user": {
                        "id": result.user.id,
                        "email": result.user.email,
                        "collection": result.user.collection,
                    },
                    "created": result.created,
                }, get_request_id(request)).model_dump(mode="json"),
            )

        _set_session_cookie(response, result.cookie)
        _clear_state_cookie(response)
        return response

    return router
