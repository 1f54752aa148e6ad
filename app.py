"""FastAPI application factory."""

from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_relay
from core.config import Config
from core.headers import HeaderBuilder
from core.preflight import PreflightHandler
from core.protocols import RequestLogger
from services.relay_service import RelayService
from services.upstream import UpstreamClient

RELAY_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    target = config.upstream.target()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.upstream.max_connections,
            max_keepalive_connections=config.upstream.max_keepalive_connections,
        )
        # Upstream cookies belong to the caller; the shared client must never store them
        cookie_jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.upstream.timeout, connect=config.upstream.connect_timeout),
            limits=limits,
            follow_redirects=True,
            cookies=cookie_jar,
            transport=transport,
        )
        app.state.relay_service = RelayService(
            target=target,
            upstream=UpstreamClient(client, target),
            logger=logger,
            header_builder=HeaderBuilder(),
            preflight=PreflightHandler(),
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="HTTPS Relay",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.api_route("/{path:path}", methods=RELAY_METHODS, include_in_schema=False)
    async def relay(request: Request):
        return await handle_relay(request)

    return app
