"""Test fixtures for the contact widget API."""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from contact_widget.config import Settings, get_settings
from contact_widget.main import create_app
from contact_widget.routers.contact import get_http_client

NOTION_URL = "https://api.notion.com/v1/pages"
VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class FakeUpstream:
    """Stands in for Notion and the reCAPTCHA verification service."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.notion_response = httpx.Response(200, json={"id": "page-123"})
        self.captcha_response = httpx.Response(200, json={"success": True})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == NOTION_URL:
            return self.notion_response
        if str(request.url) == VERIFY_URL:
            return self.captcha_response
        return httpx.Response(404)

    @property
    def notion_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == NOTION_URL]

    @property
    def captcha_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == VERIFY_URL]

    def last_notion_payload(self) -> dict:
        return json.loads(self.notion_requests[-1].content)


def make_settings(**overrides) -> Settings:
    values = {
        "notion_api_key": "secret_test_key",
        "notion_database_id": "db-123",
        "recaptcha_secret_key": None,
        "recaptcha_site_key": "",
        "site_url": "https://contact.example.com",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings, upstream):
    application = create_app()

    async def override_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
            yield client

    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_http_client] = override_http_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def use_settings(app):
    """Swap the settings seen by request handlers."""

    def _use(**overrides):
        app.dependency_overrides[get_settings] = lambda: make_settings(**overrides)

    return _use


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
