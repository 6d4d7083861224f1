"""
Tests for the backend client
"""
import asyncio
import json
import time

import httpx
import pytest

from llamanator.core.exceptions import BackendTimeout, BackendUnavailable
from llamanator.services.ollama_client import OllamaClient

from tests.conftest import API_URL, BACKEND_BODY, FakeBackend


def make_client(backend: FakeBackend, timeout: float = 2.0) -> OllamaClient:
    return OllamaClient(API_URL, api_key="backend-key", timeout=timeout, transport=backend.transport())


@pytest.mark.asyncio
async def test_send_posts_with_bearer_and_json(backend):
    client = make_client(backend)
    body = json.dumps({"model": "llama3", "prompt": "hi"}).encode()

    raw = await client.send(body, model="llama3")
    await client.close()

    assert json.loads(raw) == BACKEND_BODY
    assert len(backend.requests) == 1
    request = backend.requests[0]
    assert request.method == "POST"
    assert str(request.url) == API_URL
    assert request.headers["Authorization"] == "Bearer backend-key"
    assert request.headers["Content-Type"] == "application/json"
    assert request.content == body


@pytest.mark.asyncio
async def test_timeout_is_terminal_and_not_retried(backend):
    backend.delay = 5.0
    client = make_client(backend, timeout=0.2)

    start = time.monotonic()
    with pytest.raises(BackendTimeout):
        await client.send(b"{}")
    elapsed = time.monotonic() - start
    await client.close()

    assert elapsed < 1.5
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_timeout_is_a_timeout_error(backend):
    backend.delay = 5.0
    client = make_client(backend, timeout=0.1)

    with pytest.raises(TimeoutError):
        await client.send(b"{}")
    await client.close()


@pytest.mark.asyncio
async def test_slow_request_does_not_block_others():
    backend = FakeBackend()

    async def responder(request):
        if json.loads(request.content)["model"] == "slow":
            await asyncio.sleep(5.0)
        return httpx.Response(200, json={"response": "fast"})

    backend.responder = responder
    client = make_client(backend, timeout=0.5)

    async def timed(model):
        start = time.monotonic()
        try:
            await client.send(json.dumps({"model": model}).encode(), model=model)
            outcome = "ok"
        except BackendTimeout:
            outcome = "timeout"
        return outcome, time.monotonic() - start

    (slow, slow_elapsed), (fast, fast_elapsed) = await asyncio.gather(timed("slow"), timed("fast"))
    await client.close()

    assert slow == "timeout"
    assert fast == "ok"
    assert fast_elapsed < 0.4
    assert slow_elapsed < 1.5


@pytest.mark.asyncio
async def test_connection_error_is_backend_unavailable():
    backend = FakeBackend()

    def responder(request):
        raise httpx.ConnectError("Connection refused", request=request)

    backend.responder = responder
    client = make_client(backend)

    with pytest.raises(BackendUnavailable) as exc_info:
        await client.send(b"{}")
    await client.close()

    assert not isinstance(exc_info.value, BackendTimeout)
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_error_status_is_backend_unavailable():
    backend = FakeBackend()
    backend.responder = lambda request: httpx.Response(404, json={"error": "model 'x' not found"})
    client = make_client(backend)

    with pytest.raises(BackendUnavailable) as exc_info:
        await client.send(b"{}")
    await client.close()

    assert exc_info.value.metadata["status_code"] == 404


@pytest.mark.asyncio
async def test_health_check(backend):
    client = make_client(backend)

    assert await client.health_check() is True
    await client.close()

    assert backend.requests[0].url.path == "/api/tags"


@pytest.mark.asyncio
async def test_health_check_unreachable():
    backend = FakeBackend()

    def responder(request):
        raise httpx.ConnectError("Connection refused", request=request)

    backend.responder = responder
    client = make_client(backend)

    assert await client.health_check() is False
    await client.close()


def test_from_settings(settings):
    client = OllamaClient.from_settings(settings)
    assert client.api_url == settings.api_url
    assert client.timeout == float(settings.request_timeout)
    assert client.headers["Authorization"] == f"Bearer {settings.api_key}"
