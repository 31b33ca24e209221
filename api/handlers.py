"""FastAPI route handlers."""

import time

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from core.auth import is_authorized
from core.builder import UPSTREAM_PREFIX, RequestBuilder, read_body
from core.config import Config
from core.cors import apply_cors_headers, preflight_response
from core.exceptions import AuthError, ProxyError
from core.protocols import RequestLogger
from services.upstream import UpstreamClient
from ui.log_utils import write_request_log


def _path_tail(request: Request, tail: str) -> str:
    """Return the undecoded path after /v1/, falling back to the route match."""
    raw_path = request.scope.get("raw_path")
    prefix = UPSTREAM_PREFIX.encode("ascii")
    if raw_path and raw_path.startswith(prefix):
        return raw_path[len(prefix):].split(b"?", 1)[0].decode("latin-1")
    return tail


async def handle_proxy(
    request: Request,
    tail: str,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Handle /v1/{tail}: preflight, auth, build, relay."""
    if request.method == "OPTIONS":
        return preflight_response()

    started = time.monotonic()
    path = request.url.path
    try:
        response = await _forward(request, tail, config, logger)
    except ProxyError as e:
        logger.log_error(path, e.status_code, e.message)
        response = PlainTextResponse(e.message, status_code=e.status_code)
    logger.log_request(request.method, path, response.status_code, time.monotonic() - started)
    return apply_cors_headers(response)


async def _forward(
    request: Request,
    tail: str,
    config: Config,
    logger: RequestLogger,
) -> Response:
    if not is_authorized(request.headers, config.auth.service_token):
        raise AuthError()

    if config.proxy.debug:
        write_request_log(request.method, request.url.path, dict(request.headers))

    body = await read_body(request.stream(), config.limits.max_body_size)
    builder: RequestBuilder = request.app.state.request_builder
    prepared, dropped = builder.build(
        request.method,
        _path_tail(request, tail),
        request.scope.get("query_string", b"").decode("latin-1"),
        request.headers.raw,
        body,
    )
    for name in dropped:
        logger.log_warning(f"dropped invalid request header: {name}")

    upstream: UpstreamClient = request.app.state.upstream_client
    return await upstream.send(prepared)


async def handle_healthz() -> Response:
    """Liveness check."""
    return PlainTextResponse("ok")
