"""Header filtering between the caller hop and the upstream hop."""

from collections.abc import Iterable

RawHeaders = list[tuple[bytes, bytes]]

# Scoped to a single transport connection, never forwarded in either direction.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "host",
    }
)

# Upstream CORS policy is replaced by the proxy's own.
CORS_HEADERS = frozenset(
    {
        "access-control-allow-origin",
        "access-control-allow-methods",
        "access-control-allow-headers",
        "access-control-max-age",
        "access-control-expose-headers",
        "access-control-allow-credentials",
        "access-control-request-method",
        "access-control-request-headers",
    }
)

AUTHORIZATION = "authorization"


def _name(name: str | bytes) -> str:
    if isinstance(name, bytes):
        name = name.decode("latin-1")
    return name.lower()


def is_hop_by_hop(name: str | bytes) -> bool:
    return _name(name) in HOP_BY_HOP_HEADERS


def is_cors_header(name: str | bytes) -> bool:
    return _name(name) in CORS_HEADERS


def is_valid_header_value(value: bytes) -> bool:
    """Return True if the value can be re-transmitted on a new hop.

    Visible ASCII, spaces, horizontal tabs and obs-text bytes are accepted;
    any other control byte (CR, LF, NUL, DEL, ...) is not.
    """
    return all((b >= 0x20 and b != 0x7F) or b == 0x09 for b in value)


def copy_headers_filtered(src: Iterable[tuple[bytes, bytes]], dst: RawHeaders) -> list[str]:
    """Copy request headers except hop-by-hop headers and the authorization header.

    Returns the names of headers dropped because their value was invalid.
    """
    return _copy(src, dst, lambda name: is_hop_by_hop(name) or name == AUTHORIZATION)


def copy_response_headers_filtered(src: Iterable[tuple[bytes, bytes]], dst: RawHeaders) -> list[str]:
    """Copy response headers except hop-by-hop and CORS headers.

    Returns the names of headers dropped because their value was invalid.
    """
    return _copy(src, dst, lambda name: is_hop_by_hop(name) or is_cors_header(name))


def _copy(src, dst: RawHeaders, skip) -> list[str]:
    dropped: list[str] = []
    for raw_name, value in src:
        name = _name(raw_name)
        if skip(name):
            continue
        if not is_valid_header_value(value):
            dropped.append(name)
            continue
        dst.append((name.encode("latin-1"), value))
    return dropped
