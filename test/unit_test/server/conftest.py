from typing import AsyncGenerator, Callable, List, Optional
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# Identity headers used by the test session resolver
TENANT_HEADER = "x-test-tenant"
PROJECT_HEADER = "x-test-project"
SCOPE_HEADERS = {TENANT_HEADER: "t1", PROJECT_HEADER: "p1"}
OTHER_SCOPE_HEADERS = {TENANT_HEADER: "t2", PROJECT_HEADER: "p2"}


class Upstream:
    """Programmable stand-in for the services tools call out to."""

    def __init__(self) -> None:
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"path": request.url.path}
        )
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest_asyncio.fixture(name="app")
async def app_fixture(in_memory_session: AsyncSession, upstream: Upstream):
    """The application with database, identity and outbound HTTP overridden."""
    from mockbridge.core.database import get_session
    from mockbridge.server.main import app
    from mockbridge.server.services.deps import get_tool_executor
    from mockbridge.server.services.identity import SessionScope, resolve_session_scope
    from mockbridge.tooling.executor import HttpToolExecutor

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield in_memory_session

    async def resolve_session_scope_override(request: Request) -> Optional[SessionScope]:
        tenant_id = request.headers.get(TENANT_HEADER)
        project_id = request.headers.get(PROJECT_HEADER)
        if tenant_id and project_id:
            return SessionScope(tenant_id=tenant_id, project_id=project_id)
        return None

    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as outbound:
        app.dependency_overrides[get_session] = get_session_override
        app.dependency_overrides[resolve_session_scope] = resolve_session_scope_override
        app.dependency_overrides[get_tool_executor] = lambda: HttpToolExecutor(outbound)
        try:
            yield app
        finally:
            app.dependency_overrides.clear()


@pytest_asyncio.fixture(name="client")
async def client_fixture(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("mockbridge.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client


@pytest.fixture
def create_route(client: AsyncClient):
    """Register a mock route in the default test scope and return its JSON."""

    async def _create(headers=None, **fields) -> dict:
        payload = {"method": "GET", "path": "/items/:id", "responseBody": '{"ok": true}'}
        payload.update(fields)
        response = await client.post("/api/v1/routes", json=payload, headers=headers or SCOPE_HEADERS)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def create_server(client: AsyncClient):
    """Create a tool server in the default test scope and return its JSON."""

    async def _create(headers=None, **fields) -> dict:
        payload = {"name": "Users API", "baseUrl": "http://mock.upstream"}
        payload.update(fields)
        response = await client.post("/api/v1/tool-servers", json=payload, headers=headers or SCOPE_HEADERS)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def scope_headers() -> dict:
    return dict(SCOPE_HEADERS)


@pytest.fixture
def other_scope_headers() -> dict:
    return dict(OTHER_SCOPE_HEADERS)
