"""Service token check for inbound requests."""

import hmac
from collections.abc import Mapping

BEARER_PREFIX = "Bearer "


def is_authorized(headers: Mapping[str, str], expected_token: str) -> bool:
    """Return True if the authorization header carries the expected bearer token.

    Header values arrive latin-1 decoded; anything outside ASCII is rejected
    rather than compared.
    """
    value = headers.get("authorization")
    if value is None or not value.isascii() or not value.startswith(BEARER_PREFIX):
        return False
    token = value[len(BEARER_PREFIX):]
    return hmac.compare_digest(token.encode("ascii"), expected_token.encode("utf-8"))
