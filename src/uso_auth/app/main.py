# src/uso_auth/app/main.py
from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from uso_auth.app.auth.kakao import KakaoVerifier
from uso_auth.app.core.config import Settings
from uso_auth.app.core.errors import ConfigError, GatewayError
from uso_auth.app.core.logging import setup_logging
from uso_auth.app.core.trace import configure_trace
from uso_auth.app.services.gateway import Gateway
from uso_auth.app.services.store import MemberStore, create_store

log = logging.getLogger("uso_auth")


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def _gateway_error(_: Request, ex: GatewayError):
        return JSONResponse(status_code=ex.status_code, content=ex.to_body())

    @app.exception_handler(RequestValidationError)
    async def _bad_request(_: Request, ex: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "bad_request"})


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[MemberStore] = None,
    verifier: Optional[KakaoVerifier] = None,
) -> FastAPI:
    """
    Build the gateway app. Reads the environment (and .env) when no settings
    are given; missing required values raise ConfigError here, at startup.

      uvicorn --factory uso_auth.app.main:create_app
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    configure_trace(settings.auth_trace)
    gateway = Gateway(settings, store or create_store(settings), verifier=verifier)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await gateway.store.startup()
        log.info("uso-auth ready (store=%s)", settings.store_backend)
        try:
            yield
        finally:
            await gateway.store.close()

    app = FastAPI(title="uso-auth", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.allow_all_origins else list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    # Health check (open)
    @app.get("/health")
    def health():
        return {"ok": True}

    from uso_auth.app.api.routes.auth import router as auth_router
    from uso_auth.app.api.routes.members import router as members_router
    app.include_router(auth_router)
    app.include_router(members_router)

    return app


def run() -> None:
    """Console entry point: fail fast on missing env, then serve."""
    import uvicorn

    setup_logging()
    try:
        settings = Settings.from_env()
    except ConfigError as ex:
        log.error("%s", ex)
        sys.exit(1)

    app = create_app(settings)
    log.info("uso-auth listening on :%s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
