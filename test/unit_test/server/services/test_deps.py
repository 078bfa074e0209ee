"""Unit tests for server services dependencies and caller identity."""

from typing import get_args

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from mockbridge.core.errors import MissingCredentialError
from mockbridge.engine import CallerIdentity, JinjaTemplateRenderer
from mockbridge.server.core.config import settings
from mockbridge.server.exception_handlers import setup_exception_handlers
from mockbridge.server.services.deps import (
    ExecutorDep,
    get_template_renderer,
    get_tool_executor,
)
from mockbridge.server.services.identity import (
    SessionScope,
    get_caller_identity,
    require_session_scope,
    resolve_session_scope,
)
from mockbridge.tooling.executor import HttpToolExecutor


class TestProviders:
    def test_executor_dep_uses_get_tool_executor(self):
        depends_obj = get_args(ExecutorDep)[1]
        assert depends_obj.dependency is get_tool_executor

    def test_executor_uses_configured_timeout(self):
        executor = get_tool_executor()
        assert isinstance(executor, HttpToolExecutor)
        assert executor.timeout == settings.mcp.tool_timeout_seconds

    def test_template_renderer(self):
        assert isinstance(get_template_renderer(), JinjaTemplateRenderer)


@pytest.fixture
def identity_app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/whoami")
    async def whoami(identity: CallerIdentity = Depends(get_caller_identity)):
        return {"tenant": identity.tenant_id, "project": identity.project_id, "key": identity.api_key}

    @app.get("/admin")
    async def admin(scope: SessionScope = Depends(require_session_scope)):
        return {"tenant": scope.tenant_id}

    return app


async def _get(app: FastAPI, path: str, headers=None):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        return await client.get(path, headers=headers)


class TestIdentity:
    async def test_identity_headers_ignored_unless_trusted(self, identity_app, monkeypatch):
        monkeypatch.setattr(settings, "trust_identity_headers", False)
        response = await _get(identity_app, "/whoami", {"x-tenant-id": "t1", "x-project-id": "p1", "x-api-key": " k "})
        assert response.json() == {"tenant": None, "project": None, "key": "k"}

    async def test_trusted_identity_headers(self, identity_app, monkeypatch):
        monkeypatch.setattr(settings, "trust_identity_headers", True)
        response = await _get(identity_app, "/whoami", {"x-tenant-id": "t1", "x-project-id": "p1"})
        assert response.json() == {"tenant": "t1", "project": "p1", "key": None}

    async def test_partial_scope_is_anonymous(self, identity_app, monkeypatch):
        monkeypatch.setattr(settings, "trust_identity_headers", True)
        response = await _get(identity_app, "/whoami", {"x-tenant-id": "t1"})
        assert response.json()["tenant"] is None

    async def test_admin_requires_scope(self, identity_app, monkeypatch):
        monkeypatch.setattr(settings, "trust_identity_headers", False)
        response = await _get(identity_app, "/admin")
        assert (response.status_code, response.json()) == (401, {"error": "Unauthorized"})

    async def test_resolver_can_be_overridden(self, identity_app):
        identity_app.dependency_overrides[resolve_session_scope] = lambda: SessionScope("acme", "web")
        response = await _get(identity_app, "/admin")
        assert response.json() == {"tenant": "acme"}

    async def test_require_session_scope_raises(self):
        with pytest.raises(MissingCredentialError):
            await require_session_scope(None)
