"""Shared pytest fixtures for the dashboard test suite.

Provides:
- anyio_backend: async tests run on asyncio
- now / windows: a fixed clock (Thursday 2026-10-15 12:00 UTC) and its windows
- settings: Settings pointing at a fake backend with no retry delay
- backend: a recording fake of the workshop REST backend (httpx.MockTransport)
- make_service: DashboardService factory wired to the fake backend
"""

from collections.abc import Callable
from datetime import datetime, timezone

import httpx
import pytest

from src.config.settings import Settings
from src.dashboard.config import DashboardConfig
from src.dashboard.service import DashboardService
from src.dashboard.windows import TimeWindows

NOW = datetime(2026, 10, 15, 12, 0, tzinfo=timezone.utc)


class FakeBackend:
    """Serves canned collections per path and records every request.

    A route is either a JSON body or an ``int`` status code answered with
    an error body. Unknown paths answer ``[]``.
    """

    def __init__(self) -> None:
        self.routes: dict[str, object] = {}
        self.calls: list[httpx.Request] = []

    def serve(self, path: str, body: object) -> None:
        self.routes[path] = body

    def calls_to(self, path: str) -> int:
        return sum(1 for r in self.calls if r.url.path.endswith(path))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/api")
        body = self.routes.get(path, [])
        if isinstance(body, int):
            return httpx.Response(body, json={"error": "denied"})
        return httpx.Response(200, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def windows() -> TimeWindows:
    return TimeWindows.at(NOW, timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        API_BASE_URL="http://backend.test/api",
        API_TOKEN="service-token",
        FORBIDDEN_RETRY_DELAY_S=0.0,
        TIMEZONE="UTC",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_service(settings: Settings, backend: FakeBackend) -> Callable[..., DashboardService]:
    def _factory(config: DashboardConfig | None = None, **kwargs) -> DashboardService:
        kwargs.setdefault("transport", backend.transport)
        kwargs.setdefault("clock", lambda: NOW)
        kwargs.setdefault("sleep", _no_sleep)
        return DashboardService(settings, config, **kwargs)

    return _factory
