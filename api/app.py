"""FastAPI application wiring."""

import logging

import redis
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from clients.valkey_client import ValkeyClient
from oidc.api import create_oidc_router
from oidc.service import OIDCLoginService

logger = logging.getLogger(__name__)


def create_app(login_service: OIDCLoginService, valkey: ValkeyClient | None = None) -> FastAPI:
    """Standalone app serving the OIDC login routes.

    Hosts embedding the flow in an existing app can include
    create_oidc_router(login_service) directly instead. Pass the Valkey
    client backing the state replay guard to have /health check it.
    """
    app = FastAPI(title="CMS OIDC Login")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(create_oidc_router(login_service))

    @app.get("/health")
    def health():
        if valkey is not None:
            try:
                valkey.ping()
            except redis.RedisError as e:
                logger.error(f"Health check: Valkey unreachable ({type(e).__name__})")
                return JSONResponse(status_code=503, content={"status": "degraded"})
        return {"status": "ok"}

    return app
