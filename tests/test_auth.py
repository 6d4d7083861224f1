"""
Tests for bearer token checks
"""
import pytest
from fastapi.testclient import TestClient

from llamanator.core.auth import check_bearer_token, token_hint
from llamanator.main import create_app
from llamanator.services.ollama_client import OllamaClient

from tests.conftest import make_settings


@pytest.mark.parametrize("header, expected", [
    ("Bearer s3cret", True),
    ("Bearer s3cre", False),
    ("Bearer s3cret2", False),
    ("bearer s3cret", False),
    ("s3cret", False),
    ("Bearer", False),
    ("", False),
    (None, False),
    ("Bearer ünï", False),
    ("Bearer ✓", False),
])
def test_check_bearer_token(header, expected):
    assert check_bearer_token(header, "s3cret") is expected


def test_non_ascii_token_matches_latin1_decoded_header():
    # Starlette decodes header bytes as latin-1
    header = "Bearer ünï".encode("utf-8").decode("latin-1")
    assert check_bearer_token(header, "ünï") is True


def test_non_ascii_token_rejects_already_decoded_text():
    assert check_bearer_token("Bearer ünï", "ünï") is False


def test_header_outside_latin1_fails_closed():
    assert check_bearer_token("Bearer ✓", "✓") is False


def test_non_ascii_token_over_http(tmp_path, registry, backend):
    settings = make_settings(tmp_path, auth_token="ünï")
    client = OllamaClient.from_settings(settings, transport=backend.transport())
    app = create_app(settings, registry=registry, client=client)

    with TestClient(app) as test_client:
        response = test_client.post(
            "/template/suffix",
            json={"query": "q"},
            headers={"Authorization": "Bearer ünï".encode("utf-8")},
        )
        wrong = test_client.post(
            "/template/suffix",
            json={"query": "q"},
            headers={"Authorization": "Bearer üni".encode("utf-8")},
        )

    assert response.status_code == 200
    assert wrong.status_code == 401
    assert len(backend.payloads) == 1


@pytest.mark.parametrize("header, hint", [
    ("Bearer abcdef", "f"),
    ("x", "x"),
    ("", "<none>"),
    (None, "<none>"),
])
def test_token_hint(header, hint):
    assert token_hint(header) == hint
