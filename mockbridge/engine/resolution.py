"""
Three-tier credential precedence shared by mock routes and tool servers.

The same policy answers "which definition handles this call?" for both the
mock catch-all (keyed by method and path) and the RPC bridge (keyed by slug):

1. An authenticated caller (tenant and project) is looked up in its own scope;
   the first match wins even when an API key was also supplied.
2. An authenticated caller with no scoped match and no key gets ``NotFoundError``.
3. A supplied key must name an enabled definition (``InvalidCredentialError``
   otherwise) and that definition must match the call (``NotFoundError``
   otherwise).
4. Anyone else is served by the public lookup, or ``MissingCredentialError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from mockbridge.core.errors import InvalidCredentialError, MissingCredentialError, NotFoundError
from mockbridge.core.logging_config import get_logger

logger = get_logger(__name__)

MatchT = TypeVar("MatchT")
KeyedT = TypeVar("KeyedT")


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling: an optional session scope and an optional API key."""

    tenant_id: Optional[str] = None
    project_id: Optional[str] = None
    api_key: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.tenant_id) and bool(self.project_id)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


async def resolve_with_precedence(
    identity: CallerIdentity,
    *,
    scoped_lookup: Callable[[str, str], Awaitable[Optional[MatchT]]],
    key_lookup: Callable[[str], Awaitable[Optional[KeyedT]]],
    key_matches: Callable[[KeyedT], Optional[MatchT]],
    public_lookup: Callable[[], Awaitable[Optional[MatchT]]],
    subject: str = "route",
) -> MatchT:
    """Pick exactly one match for ``identity`` or raise the failure kind.

    Args:
        identity: Caller identity
        scoped_lookup: Finds a match inside ``(tenant_id, project_id)``
        key_lookup: Finds the enabled definition bound to an API key
        key_matches: Turns the keyed definition into a match, or None when it does not fit the call
        public_lookup: Finds a match among definitions that do not require a key
        subject: Noun used in error messages ("route", "server")

    Returns:
        The selected match

    Raises:
        NotFoundError: Authenticated caller with nothing in scope, or a key bound elsewhere
        InvalidCredentialError: The API key is not bound to any enabled definition
        MissingCredentialError: Anonymous caller and nothing public matched
    """
    if identity.is_authenticated:
        match = await scoped_lookup(identity.tenant_id, identity.project_id)
        if match is not None:
            logger.debug(f"Resolved {subject} from session scope {identity.tenant_id}/{identity.project_id}")
            return match
        if not identity.has_api_key:
            raise NotFoundError(f"{subject.capitalize()} not found")

    if identity.has_api_key:
        keyed = await key_lookup(identity.api_key.strip())
        if keyed is None:
            logger.info(f"Rejected unknown API key while resolving {subject}")
            raise InvalidCredentialError()
        match = key_matches(keyed)
        if match is None:
            raise NotFoundError(f"API key does not match this {subject}")
        logger.debug(f"Resolved {subject} by API key")
        return match

    match = await public_lookup()
    if match is None:
        raise MissingCredentialError()
    logger.debug(f"Resolved public {subject}")
    return match
