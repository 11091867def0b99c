"""
pytest configuration and shared fixtures for the admin console tests.
"""

import json
import os
import sys
from pathlib import Path

import httpx
import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Настройки читаются при импорте admin_console.core.config
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["FRONTEND_KEY"] = "test-frontend-key"
os.environ["CATALOG_API_URL"] = "http://catalog.test/"

from admin_console.services.catalog_api import CatalogAPIService  # noqa: E402

BASE_URL = "http://catalog.test"
ADMIN_HEADERS = {"X-Admin-API-Key": "test-admin-key"}


def request_json(request: httpx.Request):
    return json.loads(request.content) if request.content else None


class FakeCatalogBackend:
    """
    Маршруты фейкового бэкенда каталога для httpx.MockTransport.
    Значение маршрута: (status, body) или функция request -> (status, body) / httpx.Response.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def route(self, method, path, result):
        self.routes[(method, path)] = result

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.routes.get((request.method, request.url.path))
        if result is None:
            return httpx.Response(404, json={"error": f"No route {request.method} {request.url.path}"})
        if callable(result):
            result = result(request)
        if isinstance(result, httpx.Response):
            return result
        status_code, body = result
        if body is None:
            return httpx.Response(status_code)
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


def make_service(backend: FakeCatalogBackend, frontend_key: str = "test-frontend-key") -> CatalogAPIService:
    return CatalogAPIService(base_url=BASE_URL, frontend_key=frontend_key, transport=httpx.MockTransport(backend))


@pytest.fixture
def backend():
    return FakeCatalogBackend()


@pytest.fixture
def catalog(backend):
    return make_service(backend)


@pytest.fixture
def client(catalog):
    from fastapi.testclient import TestClient
    from admin_console.main import app
    from admin_console.dependencies import get_catalog_service

    app.dependency_overrides[get_catalog_service] = lambda: catalog
    try:
        yield TestClient(app, headers=ADMIN_HEADERS)
    finally:
        app.dependency_overrides.clear()
