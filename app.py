"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.middleware.gzip import GZipMiddleware

from api.handlers import handle_healthz, handle_proxy
from core.builder import RequestBuilder
from core.config import Config
from core.protocols import RequestLogger
from services.upstream import UpstreamClient, create_http_client

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD", "TRACE"]
GZIP_MINIMUM_SIZE = 1000


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = create_http_client(config, transport)
        app.state.upstream_client = UpstreamClient(client, logger)
        app.state.request_builder = RequestBuilder(
            config.upstream.base_url,
            config.upstream.api_key,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="OpenAI Key Proxy", version="0.1.0", lifespan=lifespan)
    # Leaves text/event-stream and already-encoded upstream bodies untouched
    app.add_middleware(GZipMiddleware, minimum_size=GZIP_MINIMUM_SIZE)

    @app.get("/healthz")
    async def healthz():
        return await handle_healthz()

    @app.api_route("/v1/{tail:path}", methods=PROXY_METHODS)
    async def proxy(request: Request, tail: str):
        return await handle_proxy(request, tail, config, logger)

    return app
