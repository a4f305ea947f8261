"""Tests for CORS header assembly and the CORS middleware."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from chat_proxy.api.routes.chat import get_chat_service
from chat_proxy.core.app_factory import create_app
from chat_proxy.core.config import AppSettings, settings
from chat_proxy.core.cors import build_cors_headers, parse_allowed_origins, resolve_allow_origin


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        cors_allow_any_origin=False,
        cors_allowed_origins="https://www.propertyfinder.ae,chrome-extension://",
        cors_max_age_seconds=86400,
    )


def test_parse_allowed_origins_keeps_order():
    assert parse_allowed_origins(" https://b.example ,https://a.example,, ") == [
        "https://b.example",
        "https://a.example",
    ]
    assert parse_allowed_origins("") == []


@pytest.mark.parametrize(
    "origin",
    ["https://www.propertyfinder.ae", "chrome-extension://abcdefghijklmnop"],
)
def test_allow_listed_origin_is_reflected(app_settings: AppSettings, origin: str):
    headers = build_cors_headers(origin, app_settings)

    assert headers["Access-Control-Allow-Origin"] == origin
    assert headers["Vary"] == "Origin"


@pytest.mark.parametrize("origin", ["https://evil.example", "", None])
def test_unknown_origin_gets_first_allowed_origin(app_settings: AppSettings, origin):
    assert resolve_allow_origin(origin, app_settings) == "https://www.propertyfinder.ae"


def test_wildcard_mode(app_settings: AppSettings):
    app_settings.cors_allow_any_origin = True

    headers = build_cors_headers("https://evil.example", app_settings)

    assert headers["Access-Control-Allow-Origin"] == "*"
    assert "Vary" not in headers


def test_empty_allow_list_falls_back_to_wildcard(app_settings: AppSettings):
    app_settings.cors_allowed_origins = ""

    assert resolve_allow_origin("https://anything.example", app_settings) == "*"


def test_static_headers(app_settings: AppSettings):
    headers = build_cors_headers(None, app_settings)

    assert headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert headers["Access-Control-Allow-Headers"] == "Content-Type"
    assert headers["Access-Control-Max-Age"] == "86400"


def test_max_age_can_be_omitted(app_settings: AppSettings):
    app_settings.cors_max_age_seconds = None

    assert "Access-Control-Max-Age" not in build_cors_headers(None, app_settings)


def test_middleware_adds_headers_to_every_response(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.app, "cors_allow_any_origin", False)
    monkeypatch.setattr(settings.app, "cors_allowed_origins", "https://www.propertyfinder.ae")
    client = TestClient(create_app())

    for response in (
        client.get("/health", headers={"Origin": "https://www.propertyfinder.ae"}),
        client.get("/missing", headers={"Origin": "https://www.propertyfinder.ae"}),
        client.post("/api/chat", content=b"[", headers={"Origin": "https://www.propertyfinder.ae"}),
    ):
        assert response.headers["Access-Control-Allow-Origin"] == "https://www.propertyfinder.ae"
        assert response.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"


def test_preflight_short_circuits_on_any_path():
    client = TestClient(create_app())

    response = client.options(
        "/anything",
        headers={
            "Origin": "chrome-extension://abc",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["Access-Control-Allow-Origin"] in ("chrome-extension://abc", "*")


def test_unhandled_error_keeps_cors_headers(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.app, "cors_allow_any_origin", False)
    monkeypatch.setattr(settings.app, "cors_allowed_origins", "https://www.propertyfinder.ae")
    app = create_app()

    def broken_service():
        raise RuntimeError("settings could not be loaded from 10.0.0.5")

    app.dependency_overrides[get_chat_service] = broken_service
    client = TestClient(app)

    response = client.post(
        "/api/chat",
        json={"messages": []},
        headers={"Origin": "https://www.propertyfinder.ae", "X-Forwarded-For": "203.0.113.7"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "10.0.0.5" not in response.text
    assert response.headers["Access-Control-Allow-Origin"] == "https://www.propertyfinder.ae"
    assert response.headers["Access-Control-Allow-Methods"] == "POST, OPTIONS"
