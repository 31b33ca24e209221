"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard, ConsoleLogger)."""

    def log_request(self, method: str, path: str, status: int, elapsed: float) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
    def log_warning(self, message: str) -> None: ...
