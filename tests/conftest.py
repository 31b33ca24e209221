"""Shared fixtures: a proxy app wired to an in-process mock upstream."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import AuthSettings, Config, LimitsSettings, UpstreamSettings

SERVICE_TOKEN = "svc-token-1234567890"
UPSTREAM_KEY = "sk-upstream-abcdefghijkl"


class RecordingLogger:
    """RequestLogger that keeps every event in memory."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, int]] = []
        self.errors: list[tuple[str, int, str]] = []
        self.warnings: list[str] = []

    def log_request(self, method: str, path: str, status: int, elapsed: float) -> None:
        self.requests.append((method, path, status))

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))

    def log_warning(self, message: str) -> None:
        self.warnings.append(message)


class MockUpstream:
    """Records upstream-bound requests and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.headers: dict[str, str] | list[tuple[str, str]] = {"content-type": "application/json"}
        self.content = b'{"ok": true}'
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.content, bytes):
            return httpx.Response(
                self.status_code, headers=self.headers, stream=httpx.ByteStream(self.content)
            )
        return httpx.Response(self.status_code, headers=self.headers, content=self.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def config() -> Config:
    return Config(
        auth=AuthSettings(service_token=SERVICE_TOKEN),
        upstream=UpstreamSettings(api_key=UPSTREAM_KEY),
        limits=LimitsSettings(max_body_size=1024),
    )


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def client(config, logger, upstream):
    app = create_app(config, logger, transport=upstream.transport)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {SERVICE_TOKEN}"}
