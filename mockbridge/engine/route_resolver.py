"""Bind the shared credential precedence to mock routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from mockbridge.core.database.entities import MockRoute
from mockbridge.core.database.repositories import MockRouteRepository
from mockbridge.core.errors import MethodNotAllowedError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.domain import SUPPORTED_MOCK_METHODS

from .path_matcher import PathMatch, PathParams, find_matching_route, match_single, normalize_path
from .resolution import CallerIdentity, resolve_with_precedence

logger = get_logger(__name__)


@dataclass
class RouteMatch:
    """A resolved route with its path bindings and template variables."""

    route: MockRoute
    params: PathParams = field(default_factory=dict)
    vars: Dict[str, str] = field(default_factory=dict)


class RouteResolver:
    """Resolve an inbound ``(method, path)`` to exactly one mock route."""

    def __init__(self, repository: MockRouteRepository) -> None:
        self.repository = repository

    async def resolve(self, method: str, path: str, identity: CallerIdentity) -> RouteMatch:
        """Resolve a request.

        Args:
            method: HTTP method of the inbound request
            path: Raw request path
            identity: Caller identity

        Returns:
            The matched route

        Raises:
            MethodNotAllowedError: ``method`` is not one of GET, POST, PUT, PATCH, DELETE
            NotFoundError, InvalidCredentialError, MissingCredentialError: see ``resolve_with_precedence``
        """
        wanted = (method or "").upper()
        if wanted not in SUPPORTED_MOCK_METHODS:
            raise MethodNotAllowedError(wanted)
        path = normalize_path(path)

        async def scoped(tenant_id: str, project_id: str) -> Optional[PathMatch[MockRoute]]:
            routes = await self.repository.list_enabled_for_scope(tenant_id, project_id, wanted)
            return find_matching_route(routes, wanted, path)

        async def public() -> Optional[PathMatch[MockRoute]]:
            routes = await self.repository.list_enabled_public(wanted)
            return find_matching_route(routes, wanted, path)

        matched = await resolve_with_precedence(
            identity,
            scoped_lookup=scoped,
            key_lookup=self.repository.get_enabled_by_api_key,
            key_matches=lambda route: match_single(route, wanted, path),
            public_lookup=public,
            subject="route",
        )

        variables = await self.repository.list_vars(matched.route.id)
        logger.info(f"Matched {wanted} {path} to route id={matched.route.id}")
        return RouteMatch(
            route=matched.route,
            params=matched.params,
            vars={var.key: var.value for var in variables},
        )
