"""Shared test fixtures for the LegalAI relay and client."""

import asyncio
import json
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from legalai.services.config_manager import ConfigManager

SCENARIO_CHUNKS = [
    b'data: {"choices":[{"delta":{"content":"Article "}}]}\n\n',
    b'data: {"choices":[{"delta":{"content":"21 guarantees life."}}]}\n\n',
    b"data: [DONE]\n\n",
]


def sse_event(content: str) -> bytes:
    """Encode one upstream delta event the way the chat API frames it."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point configuration at an empty directory and a clean environment."""
    for name in ("GROQ_API_KEY", "LEGALAI_MODEL", "LEGALAI_UPSTREAM_URL", "LEGALAI_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LEGALAI_CONFIG_DIR", str(tmp_path / "config"))
    ConfigManager.reset_instance()
    yield tmp_path / "config"
    ConfigManager.reset_instance()


class FakeStreamServer:
    """An aiohttp server that records POSTs and answers with a scripted stream."""

    def __init__(self):
        self.requests = []
        self.status = 200
        self.error_body = "upstream exploded: internal detail"
        self.chunks = list(SCENARIO_CHUNKS)
        self.stall = 0.0
        self.server = None

    async def handle(self, request: web.Request) -> web.StreamResponse:
        self.requests.append({"headers": dict(request.headers), "json": await request.json()})
        if self.status != 200:
            if isinstance(self.error_body, bytes):
                return web.Response(status=self.status, body=self.error_body, content_type="text/html")
            return web.Response(status=self.status, text=self.error_body)

        response = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
        await response.prepare(request)
        try:
            for chunk in self.chunks:
                await response.write(chunk)
            if self.stall:
                await asyncio.sleep(self.stall)
            await response.write_eof()
        except ConnectionResetError:
            pass  # the client gave up while we stalled
        return response

    def url(self, path: str = "/stream") -> str:
        return str(self.server.make_url(path))


@pytest_asyncio.fixture
async def fake_server():
    """A running FakeStreamServer; POST anywhere to reach it."""
    fake = FakeStreamServer()
    app = web.Application()
    app.router.add_post("/{tail:.*}", fake.handle)
    fake.server = TestServer(app)
    await fake.server.start_server()
    yield fake
    await fake.server.close()


@pytest.fixture
def upstream_env(fake_server, monkeypatch):
    """Configure the relay to call the fake upstream with a test key."""
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test_key_123456")
    monkeypatch.setenv("LEGALAI_UPSTREAM_URL", fake_server.url("/openai/v1/chat/completions"))
    return fake_server


# ── In-process fakes for the consumer's HTTP session ────────────


class FakeContent:
    """Body stream that yields chunks, optionally waits, then maybe fails."""

    def __init__(self, chunks, error=None, gate=None):
        self.chunks = chunks
        self.error = error
        self.gate = gate

    async def iter_any(self):
        for chunk in self.chunks:
            yield chunk
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


class FakeResponse:
    def __init__(self, status=200, content=None, content_length=None):
        self.status = status
        self.content = content
        self.content_length = content_length


class FakeSession:
    """Stands in for aiohttp.ClientSession.post in consumer tests."""

    def __init__(self, response: FakeResponse):
        self.response = response
        self.calls = []

    @asynccontextmanager
    async def post(self, url, json=None, headers=None):
        self.calls.append({"url": url, "json": json, "headers": headers})
        yield self.response
