"""
Endpoint Dependencies.

Annotated FastAPI dependencies shared by the API routers. Tests and embedding
applications replace the providers through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mockbridge.core.database import get_session
from mockbridge.engine.resolution import CallerIdentity
from mockbridge.engine.templating import JinjaTemplateRenderer, TemplateRenderer
from mockbridge.server.core.config import settings
from mockbridge.tooling.executor import HttpToolExecutor

from .identity import SessionScope, get_caller_identity, require_session_scope


def get_tool_executor() -> HttpToolExecutor:
    """Outbound executor using the configured tool timeout."""
    return HttpToolExecutor(timeout=settings.mcp.tool_timeout_seconds)


def get_template_renderer() -> TemplateRenderer:
    return JinjaTemplateRenderer()


SessionDep = Annotated[AsyncSession, Depends(get_session)]
IdentityDep = Annotated[CallerIdentity, Depends(get_caller_identity)]
ScopeDep = Annotated[SessionScope, Depends(require_session_scope)]
ExecutorDep = Annotated[HttpToolExecutor, Depends(get_tool_executor)]
TemplateRendererDep = Annotated[TemplateRenderer, Depends(get_template_renderer)]
