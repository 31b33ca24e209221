"""Upstream request construction."""

from collections.abc import AsyncIterator, Iterable

import httpx
from starlette.requests import ClientDisconnect

from core.exceptions import RequestConstructionError, RequestTooLarge
from core.headers import AUTHORIZATION, copy_headers_filtered, is_valid_header_value
from core.request_types import PreparedRequest

UPSTREAM_PREFIX = "/v1/"


def build_upstream_url(base_url: str, tail: str, query: str = "") -> str:
    """Join the fixed upstream origin with the forwarded path and query.

    The tail is passed through as-is; it is never decoded or re-encoded here.
    """
    path = UPSTREAM_PREFIX + tail
    if query:
        path += "?" + query
    url = base_url.rstrip("/") + path
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise RequestConstructionError(f"uri parse error: {e}", status_code=500) from e
    return url


def build_upstream_headers(
    headers: Iterable[tuple[bytes, bytes]],
    api_key: str,
) -> tuple[list[tuple[bytes, bytes]], list[str]]:
    """Filter caller headers and inject the upstream credential.

    Returns (headers, dropped_header_names).
    """
    upstream: list[tuple[bytes, bytes]] = []
    dropped = copy_headers_filtered(headers, upstream)
    try:
        value = f"Bearer {api_key}".encode("ascii")
    except UnicodeEncodeError as e:
        raise RequestConstructionError("hdr error: invalid upstream credential", status_code=500) from e
    if not is_valid_header_value(value):
        raise RequestConstructionError("hdr error: invalid upstream credential", status_code=500)
    upstream.append((AUTHORIZATION.encode("ascii"), value))
    return upstream, dropped


async def read_body(stream: AsyncIterator[bytes], max_size: int) -> bytes:
    """Materialize the inbound body, enforcing the size limit."""
    chunks: list[bytes] = []
    size = 0
    try:
        async for chunk in stream:
            size += len(chunk)
            if size > max_size:
                raise RequestTooLarge("Request body too large")
            chunks.append(chunk)
    except ClientDisconnect as e:
        raise RequestConstructionError("read body error: client disconnected", status_code=400) from e
    return b"".join(chunks)


class RequestBuilder:
    """Build upstream requests against one fixed origin and credential."""

    def __init__(self, base_url: str, api_key: str) -> None:
        self._base_url = base_url
        self._api_key = api_key

    def build(
        self,
        method: str,
        tail: str,
        query: str,
        headers: Iterable[tuple[bytes, bytes]],
        body: bytes,
    ) -> tuple[PreparedRequest, list[str]]:
        """Return the prepared request and the names of dropped headers."""
        url = build_upstream_url(self._base_url, tail, query)
        upstream_headers, dropped = build_upstream_headers(headers, self._api_key)
        return PreparedRequest(method, url, upstream_headers, body), dropped
