"""Custom exception hierarchy for the key proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Attributes:
        message: Error message, safe to return to the caller
        status_code: HTTP status code the error maps to
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class AuthError(ProxyError):
    """Missing, malformed or incorrect bearer token."""

    status_code = 401

    def __init__(self) -> None:
        super().__init__("unauthorized: missing or invalid bearer token")


class RequestConstructionError(ProxyError):
    """Upstream request could not be built (URL, header value or body read)."""


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""

    status_code = 413


class UpstreamTransportError(ProxyError):
    """Raised when the upstream call fails at the transport level."""

    status_code = 502


class RelayIOError(ProxyError):
    """Raised when a chunk cannot be relayed after the status was sent."""
