from typing import Callable

import httpx
import pytest
import pytest_asyncio

from docrender.config.environment import Environment
from docrender.engine.contract import EngineHooks
from docrender.engine.testing import RecordingEngine
from docrender.render.renderer import Renderer


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user settings files and DOCRENDER_* variables out of tests."""
    monkeypatch.setenv("DOCRENDER_SETTINGS", str(tmp_path / "settings.yaml"))
    for key in (
        "DOCRENDER_USER_AGENT",
        "DOCRENDER_MAX_WORKERS",
        "DOCRENDER_HTTP_TIMEOUT",
        "DOCRENDER_ENGINE",
    ):
        monkeypatch.delenv(key, raising=False)
    Environment.reset()
    yield
    Environment.reset()


class Routes:
    """URL -> (status, body) table served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.responses: dict[str, tuple[int, bytes]] = {}
        self.requests: list[httpx.Request] = []
        self.errors: dict[str, Exception] = {}

    def add(self, url: str, body: bytes | str, status: int = 200) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.responses[url] = (status, body)

    def fail(self, url: str, error: Exception) -> None:
        self.errors[url] = error

    def requested(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.errors:
            raise self.errors[url]
        status, body = self.responses.get(url, (404, b"not found"))
        return httpx.Response(status, content=body)


@pytest.fixture
def routes() -> Routes:
    return Routes()


@pytest_asyncio.fixture
async def http_client(routes: Routes):
    async with httpx.AsyncClient(transport=httpx.MockTransport(routes.handler)) as client:
        yield client


@pytest.fixture
def engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def engine_factory(engine: RecordingEngine) -> Callable[[EngineHooks], RecordingEngine]:
    def factory(hooks: EngineHooks) -> RecordingEngine:
        engine.hooks = hooks
        return engine

    return factory


@pytest.fixture
def renderer(engine_factory, http_client) -> Renderer:
    return Renderer(engine_factory, http_client=http_client)
