"""
Access-code verification and authorization decisions for client routing.
"""
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends
from api.deps import Services, get_services, resolve_caller_profile
from core.auth import Authed, auth_optional
from core.roles import authorize
from domain.models import AccessDecision
from schemas.identity import DecideIn, ResolveCodeIn, ResolveCodeOut

router = APIRouter(prefix="/api/v1", tags=["access"])


@router.post("/access-codes/resolve", response_model=ResolveCodeOut)
def resolve_code(body: ResolveCodeIn, services: Services = Depends(get_services)):
    """Which tenant and role a license key grants (shown before signup)."""
    return services.codes.resolve(body.access_code)


@router.post("/access/decide", response_model=AccessDecision)
def decide(
    body: DecideIn,
    auth: Optional[Authed] = Depends(auth_optional),
    services: Services = Depends(get_services),
) -> AccessDecision:
    """
    Same decision the server-side guard makes, for client-side route guards.

    An absent token is a valid input ("not authenticated"), not an error.
    """
    profile = None
    if auth is not None:
        tenant_slug = body.tenant_slug or (None if body.require_super_admin else auth.tenant_slug)
        profile = resolve_caller_profile(services, auth, tenant_slug, body.require_super_admin)
    return authorize(
        auth is not None,
        profile,
        body.tenant_slug,
        body.required_roles,
        body.require_super_admin,
    )
