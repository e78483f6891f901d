"""
Pytest fixtures for the tenant console tests.

Provides the stand-in REST API (Flask) reachable through an httpx transport,
shared (cross-tab) and tab-local storage, and consoles for two tabs of the
same origin.
"""

import asyncio

import httpx
import pytest

from tenant_console import Config, create_console
from tenant_console.extensions import make_engine, make_session_factory
from tenant_console.mock_backend import create_app
from tenant_console.mock_backend.state import EXTENSION_KEY, DEFAULT_PASSWORD
from tenant_console.models import SettingEntry
from tenant_console.services.api_client import ApiNetworkError
from tenant_console.services.storage_service import SharedStorage, TabStorage


ORIGIN = "http://console.test"


class ConsoleTestConfig(Config):
    API_BASE_URL = "http://api.test/api"
    SHARED_STORAGE_URL = "sqlite://"
    STORAGE_ORIGIN = ORIGIN


def run(coro):
    """Drive one coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def flask_transport(app) -> httpx.MockTransport:
    """Route httpx requests into the Flask test client."""
    client = app.test_client()
    skip = {"host", "content-length", "transfer-encoding"}

    def handler(request: httpx.Request) -> httpx.Response:
        response = client.open(
            path=request.url.raw_path.decode("ascii"),
            method=request.method,
            headers=[(k, v) for k, v in request.headers.items() if k.lower() not in skip],
            data=request.content,
        )
        return httpx.Response(
            response.status_code,
            headers=[(k, v) for k, v in response.headers.items() if k.lower() != "content-length"],
            content=response.get_data(),
        )

    return httpx.MockTransport(handler)


class FakeSettingsApi:
    """SettingsApi double: returns canned entries, optionally held open by a gate."""

    def __init__(self, entries=None):
        self.entries = list(entries or [])
        self.calls = []
        self.gate = None
        self.error = None

    async def get_all(self, category=None):
        self.calls.append(category)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return [e for e in self.entries if category is None or e.category == category]


class FakeAuthApi:
    """AuthApi double for the handshake: counts exchanges."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.gate = None

    async def impersonate(self, token):
        self.calls.append(token)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


def entry(key, value, category=None, tenant_id=None):
    return SettingEntry(key=key, category=category or key.split(".", 1)[0], value=value, tenant_id=tenant_id)


@pytest.fixture
def backend_app():
    app = create_app({"TESTING": True, "BCRYPT_ROUNDS": 4})
    return app


@pytest.fixture
def backend_state(backend_app):
    return backend_app.extensions[EXTENSION_KEY]


@pytest.fixture
def transport(backend_app):
    return flask_transport(backend_app)


@pytest.fixture
def offline_transport():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def session_factory():
    return make_session_factory(make_engine("sqlite://"))


@pytest.fixture
def shared_storage(session_factory):
    return SharedStorage(session_factory, ORIGIN)


@pytest.fixture
def tab_a():
    return TabStorage("tab-a")


@pytest.fixture
def tab_b():
    return TabStorage("tab-b")


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def console_a(shared_storage, tab_a, transport, navigations):
    console = create_console(
        shared=shared_storage, tab=tab_a, config=ConsoleTestConfig,
        transport=transport, on_navigate=navigations.append,
    )
    yield console
    run(console.aclose())


@pytest.fixture
def console_b(shared_storage, tab_b, transport):
    console = create_console(shared=shared_storage, tab=tab_b, config=ConsoleTestConfig, transport=transport)
    yield console
    run(console.aclose())


@pytest.fixture
def password():
    return DEFAULT_PASSWORD


@pytest.fixture
def network_error():
    return ApiNetworkError("POST /auth/impersonate failed: connection refused")
