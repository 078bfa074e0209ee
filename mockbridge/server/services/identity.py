"""
Caller Identity Resolution.

Builds the ``CallerIdentity`` consumed by route and server resolution from the
inbound request: an API key from a configurable header and an optional
authenticated tenant/project scope from the session resolver.

The default session resolver trusts identity headers only when
``MOCKBRIDGE_TRUST_IDENTITY_HEADERS`` is enabled (deployments behind an
authenticating proxy); embedding applications override
``resolve_session_scope`` with their own session lookup.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from mockbridge.core.errors import MissingCredentialError
from mockbridge.engine.resolution import CallerIdentity
from mockbridge.server.core.config import settings


@dataclass(frozen=True)
class SessionScope:
    """Authenticated tenant and project of the caller."""

    tenant_id: str
    project_id: str


async def resolve_session_scope(request: Request) -> Optional[SessionScope]:
    """Default session resolver: trusted identity headers, anonymous otherwise."""
    identity = settings.identity
    if not identity.trust_identity_headers:
        return None
    tenant_id = (request.headers.get(identity.tenant_header) or "").strip()
    project_id = (request.headers.get(identity.project_header) or "").strip()
    if tenant_id and project_id:
        return SessionScope(tenant_id=tenant_id, project_id=project_id)
    return None


def read_api_key(request: Request) -> Optional[str]:
    value = (request.headers.get(settings.identity.api_key_header) or "").strip()
    return value or None


async def get_caller_identity(
    request: Request, scope: Optional[SessionScope] = Depends(resolve_session_scope)
) -> CallerIdentity:
    """Identity of the caller of a mock or bridge endpoint."""
    return CallerIdentity(
        tenant_id=scope.tenant_id if scope else None,
        project_id=scope.project_id if scope else None,
        api_key=read_api_key(request),
    )


async def require_session_scope(scope: Optional[SessionScope] = Depends(resolve_session_scope)) -> SessionScope:
    """Administrative endpoints need an authenticated scope."""
    if scope is None:
        raise MissingCredentialError("Unauthorized")
    return scope
