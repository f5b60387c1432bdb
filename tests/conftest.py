import asyncio
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from codekit.api.client import ApiClient, ApiResponse
from codekit.api.errors import APIError
from codekit.config import Config


class FakeBackend:
    """Catch-all aiohttp handler serving canned responses and recording calls."""

    def __init__(self):
        self.responses: dict[tuple[str, str], tuple[int, Any, str | None]] = {}
        self.calls: list[dict[str, Any]] = []
        self.base_url = ""

    def on(self, method: str, path: str, body: Any = None, status: int = 200, text: str | None = None) -> None:
        self.responses[(method, path)] = (status, body, text)

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c["method"] == method and c["path"] == path)

    async def dispatch(self, request: web.Request) -> web.Response:
        self.calls.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "body": await request.text(),
                "headers": dict(request.headers),
                "cookies": dict(request.cookies),
            }
        )
        key = (request.method, request.path)
        if key not in self.responses:
            return web.json_response(
                {"success": False, "error": {"message": "Not found", "code": "NOT_FOUND"}},
                status=404,
            )
        status, body, text = self.responses[key]
        if text is not None:
            return web.Response(status=status, text=text, content_type="text/plain")
        if body is None:
            return web.Response(status=status)
        return web.json_response(body, status=status)


@pytest_asyncio.fixture
async def backend():
    fake = FakeBackend()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", fake.dispatch)
    server = TestServer(app)
    await server.start_server()
    fake.base_url = str(server.make_url("")).rstrip("/")
    yield fake
    await server.close()


class FakeApi(ApiClient):
    """In-process API stand-in: maps (method, path) to payloads or errors."""

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None, delay: float = 0):
        super().__init__(base_url="http://codekit.test")
        self.routes = routes if routes is not None else {}
        self.delay = delay
        self.calls: list[tuple[str, str, Any]] = []

    async def request(self, method: str, url: str, data: Any = None) -> ApiResponse:
        self.calls.append((method, url, data))
        if self.delay:
            await asyncio.sleep(self.delay)
        path = url.split("?", 1)[0]
        result = self.routes.get((method, path))
        if isinstance(result, Exception):
            raise result
        if result is None and (method, path) not in self.routes:
            raise APIError("Not found", 404)
        return ApiResponse(data=result, status=200, status_text="OK")


@pytest.fixture
def config(tmp_path):
    return Config(api_base_url="http://codekit.test", storage_path=tmp_path / "storage", page_size=2)


PROMPTS = [
    {"id": "1", "title": "Refactor component", "content": "Split this React component", "category": "Refactor", "tags": ["react"], "createdAt": "2024-01-03T10:00:00Z"},
    {"id": "2", "title": "Write tests", "content": "Generate pytest tests", "category": "Testing", "tags": ["python", "pytest"], "createdAt": "2024-01-01T10:00:00Z"},
    {"id": "3", "title": "Explain error", "content": "Explain this stack trace", "category": "Desarrollo", "tags": [], "createdAt": "2024-01-02T10:00:00Z"},
]

AFFILIATES = [
    {"id": "a1", "name": "Hostinger", "url": "https://hostinger.com", "category": "Hosting", "commission": "60%", "code": "CODEKIT"},
    {"id": "a2", "name": "GitHub Copilot", "url": "https://github.com/features/copilot?ref=x", "category": "IA"},
]


@pytest.fixture
def prompts_payload():
    return [dict(p) for p in PROMPTS]


@pytest.fixture
def affiliates_payload():
    return [dict(a) for a in AFFILIATES]
