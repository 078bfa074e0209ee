"""Unit tests for the shared three-tier credential precedence."""

from typing import List, Optional

import pytest

from mockbridge.core.errors import InvalidCredentialError, MissingCredentialError, NotFoundError
from mockbridge.engine.resolution import CallerIdentity, resolve_with_precedence


class _Lookups:
    """Records which lookups ran and returns configured results."""

    def __init__(self, scoped=None, keyed=None, public=None, key_fits: bool = True) -> None:
        self.scoped = scoped
        self.keyed = keyed
        self.public = public
        self.key_fits = key_fits
        self.calls: List[str] = []
        self.seen_key: Optional[str] = None

    async def scoped_lookup(self, tenant_id: str, project_id: str):
        self.calls.append(f"scoped:{tenant_id}/{project_id}")
        return self.scoped

    async def key_lookup(self, api_key: str):
        self.calls.append("key")
        self.seen_key = api_key
        return self.keyed

    def key_matches(self, keyed):
        return f"match:{keyed}" if self.key_fits else None

    async def public_lookup(self):
        self.calls.append("public")
        return self.public

    async def resolve(self, identity: CallerIdentity):
        return await resolve_with_precedence(
            identity,
            scoped_lookup=self.scoped_lookup,
            key_lookup=self.key_lookup,
            key_matches=self.key_matches,
            public_lookup=self.public_lookup,
        )


AUTHENTICATED = CallerIdentity(tenant_id="t1", project_id="p1")


class TestCallerIdentity:
    def test_authenticated_needs_both_ids(self):
        assert AUTHENTICATED.is_authenticated
        assert not CallerIdentity(tenant_id="t1").is_authenticated

    def test_blank_key_is_not_a_key(self):
        assert not CallerIdentity(api_key="   ").has_api_key
        assert CallerIdentity(api_key="k").has_api_key


class TestResolveWithPrecedence:
    async def test_scoped_match_wins_even_with_key(self):
        lookups = _Lookups(scoped="scoped-route", keyed="keyed", public="public")
        identity = CallerIdentity(tenant_id="t1", project_id="p1", api_key="k")
        assert await lookups.resolve(identity) == "scoped-route"
        assert lookups.calls == ["scoped:t1/p1"]

    async def test_authenticated_without_match_or_key_is_not_found(self):
        lookups = _Lookups(scoped=None, public="public")
        with pytest.raises(NotFoundError):
            await lookups.resolve(AUTHENTICATED)
        assert "public" not in lookups.calls

    async def test_authenticated_without_match_falls_through_to_key(self):
        lookups = _Lookups(scoped=None, keyed="keyed")
        identity = CallerIdentity(tenant_id="t1", project_id="p1", api_key="k")
        assert await lookups.resolve(identity) == "match:keyed"

    async def test_unknown_key_is_invalid_credential(self):
        lookups = _Lookups(keyed=None, public="public")
        with pytest.raises(InvalidCredentialError):
            await lookups.resolve(CallerIdentity(api_key="nope"))
        assert "public" not in lookups.calls

    async def test_key_bound_elsewhere_is_not_found(self):
        lookups = _Lookups(keyed="keyed", key_fits=False)
        with pytest.raises(NotFoundError):
            await lookups.resolve(CallerIdentity(api_key="k"))

    async def test_key_is_trimmed(self):
        lookups = _Lookups(keyed="keyed")
        await lookups.resolve(CallerIdentity(api_key="  k1 "))
        assert lookups.seen_key == "k1"

    async def test_anonymous_uses_public_lookup(self):
        lookups = _Lookups(public="public")
        assert await lookups.resolve(CallerIdentity()) == "public"

    async def test_anonymous_without_public_match_is_missing_credential(self):
        lookups = _Lookups(public=None)
        with pytest.raises(MissingCredentialError):
            await lookups.resolve(CallerIdentity())
