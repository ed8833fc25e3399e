"""
Wiring of stores and services, and the FastAPI dependencies built on them.

Every component receives its store/authenticator/cache explicitly. One
`Services` container is built per process; tests replace it through
`app.dependency_overrides[get_services]`.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from fastapi import Depends
from core.auth import Authed, auth_required
from core.cache import JsonCache
from core.config import Settings, settings as app_settings
from core.roles import authorize, decision_error
from domain.models import Role, TenantProfile
from repositories.join_request_repo import JoinRequestRepository
from repositories.profile_repo import ProfileRepository
from repositories.store import TenantStore
from repositories.tenant_repository import TenantRepository
from services.access_codes import AccessCodeResolver
from services.authenticator import Authenticator
from services.identity_linker import IdentityLinker
from services.join_requests import JoinRequestWorkflow
from services.profile_resolver import ProfileResolver
from services.tenant_registry import TenantRegistry


@dataclass
class Services:
    settings: Settings
    store: TenantStore
    authenticator: Authenticator
    tenants: TenantRepository
    profiles: ProfileRepository
    registry: TenantRegistry
    codes: AccessCodeResolver
    resolver: ProfileResolver
    linker: IdentityLinker
    join_requests: JoinRequestWorkflow


def build_services(
    store: TenantStore,
    authenticator: Authenticator,
    settings: Settings,
    cache: Optional[JsonCache] = None,
) -> Services:
    tenants = TenantRepository(store, cache)
    profiles = ProfileRepository(store)
    codes = AccessCodeResolver(tenants)
    return Services(
        settings=settings,
        store=store,
        authenticator=authenticator,
        tenants=tenants,
        profiles=profiles,
        registry=TenantRegistry(tenants, settings),
        codes=codes,
        resolver=ProfileResolver(profiles),
        linker=IdentityLinker(profiles, tenants, codes, authenticator, settings),
        join_requests=JoinRequestWorkflow(JoinRequestRepository(store), profiles, tenants, authenticator),
    )


@lru_cache
def get_services() -> Services:
    if app_settings.STORE_BACKEND == "memory":
        from repositories.memory_store import MemoryStore
        from services.authenticator import MemoryAuthenticator
        return build_services(MemoryStore(), MemoryAuthenticator(), app_settings)

    from core.redis import make_redis
    from repositories.pg_store import PostgresStore
    from services.authenticator import PostgresAuthenticator
    cache = JsonCache(make_redis(), app_settings.TENANT_CACHE_TTL) if app_settings.REDIS_ENABLED else None
    return build_services(PostgresStore(), PostgresAuthenticator(), app_settings, cache)


def resolve_caller_profile(
    services: Services,
    auth: Authed,
    tenant_slug: Optional[str],
    super_admin: bool = False,
) -> Optional[TenantProfile]:
    """Profile the guard should judge: tenant-scoped, or the super-admin one for platform routes."""
    if super_admin and not tenant_slug:
        flagged = services.resolver.find_super_admin_profile(auth.user_id)
        if flagged is not None:
            return flagged
        tenant_slug = auth.tenant_slug
    return services.resolver.find_profile_for_credential(auth.user_id, tenant_slug=tenant_slug, touch=False)


def require_access(*roles: Role, super_admin: bool = False):
    """
    Dependency guarding a route with `authorize`.

    The caller's profile is resolved for the tenant in the path (`slug`) when
    there is one, otherwise for the token's active tenant, otherwise by the
    cross-tenant search. Returns the allowed profile.

    Example:
        @router.get("/tenants/{slug}/members")
        def members(slug: str, profile: TenantProfile = Depends(require_access(Role.ADMIN))):
            ...
    """
    def _inner(
        auth: Authed = Depends(auth_required),
        services: Services = Depends(get_services),
        slug: Optional[str] = None,
    ) -> TenantProfile:
        # platform routes are not scoped to the token's active tenant
        tenant_slug = slug or (None if super_admin else auth.tenant_slug)
        profile = resolve_caller_profile(services, auth, tenant_slug, super_admin)
        decision = authorize(True, profile, tenant_slug, roles, super_admin)
        if not decision.allowed:
            raise decision_error(decision, tenant=tenant_slug)
        return profile
    return _inner
