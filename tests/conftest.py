"""
Pytest configuration and fixtures
"""
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from llamanator.core.config import Settings
from llamanator.core.logging_config import LoggingConfig
from llamanator.core.templates import TemplateRegistry
from llamanator.main import create_app
from llamanator.services.gateway_service import TemplateGatewayService
from llamanator.services.ollama_client import OllamaClient

AUTH_TOKEN = "test-token"
API_URL = "http://ollama.test/api/generate"

BACKEND_BODY = {
    "model": "llama3",
    "created_at": "2024-05-01T10:00:00Z",
    "response": "hi\nthere",
    "done": True,
    "context": [1, 2, 3],
    "total_duration": 1200,
    "eval_count": 5,
}


@pytest.fixture(scope="session", autouse=True)
def keep_pytest_logging():
    """Stop create_app from replacing pytest's log handlers"""
    LoggingConfig._configured = True
    yield


class FakeBackend:
    """
    Stand-in for the backend generate endpoint

    Records every request and answers with `body` (or whatever `responder`
    returns for a request).
    """

    def __init__(self, body: Optional[Dict[str, Any]] = None):
        self.body = body if body is not None else dict(BACKEND_BODY)
        self.requests: List[httpx.Request] = []
        self.responder: Optional[Callable[[httpx.Request], Any]] = None
        self.delay: float = 0.0

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.responder is not None:
            result = self.responder(request)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": []})
        return httpx.Response(200, json=self.body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        auth_token=AUTH_TOKEN,
        api_url=API_URL,
        api_key="backend-key",
        default_model="llama3",
        ollama_params={"stream": False, "options": {"temperature": 0.2}},
        response_fields=["eval_count"],
        request_timeout=2,
        strip_newline=False,
        templates_dir=tmp_path / "templates",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Gateway settings pointing at a temporary template directory"""
    return make_settings(tmp_path)


@pytest.fixture
def registry() -> TemplateRegistry:
    """Registry with a suffix template and a default template"""
    return TemplateRegistry.from_sources({
        "suffix": "{{ query }} suffix",
        "default": "{{ query }} Default template response.",
    })


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def ollama_client(settings, backend) -> OllamaClient:
    return OllamaClient.from_settings(settings, transport=backend.transport())


@pytest.fixture
def gateway_service(settings, registry, ollama_client) -> TemplateGatewayService:
    return TemplateGatewayService(settings, registry, ollama_client)


@pytest.fixture
def app(settings, registry, ollama_client):
    return create_app(settings, registry=registry, client=ollama_client)


@pytest.fixture
def client(app):
    """Test client with lifespan events"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {AUTH_TOKEN}"}
