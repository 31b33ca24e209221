"""Permissive CORS handling for the proxied API."""

from starlette.responses import Response

ALLOW_ORIGIN = "*"
ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
ALLOW_HEADERS = "Authorization, Content-Type, Accept, X-Requested-With"
MAX_AGE = "86400"


def preflight_response() -> Response:
    """Answer a preflight request. Runs before authentication."""
    response = Response(status_code=204)
    apply_cors_headers(response)
    response.headers["access-control-max-age"] = MAX_AGE
    return response


def apply_cors_headers(response: Response) -> Response:
    """Set the proxy's CORS headers, replacing any existing values."""
    response.headers["access-control-allow-origin"] = ALLOW_ORIGIN
    response.headers["access-control-allow-methods"] = ALLOW_METHODS
    response.headers["access-control-allow-headers"] = ALLOW_HEADERS
    return response
