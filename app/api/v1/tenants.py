"""
Tenant provisioning endpoints (platform super-admin) and public tenant info.

Follows Layer 2 rules:
- Provisioning and deletion → super-admin only
- License keys are only ever returned to super-admins
"""
from __future__ import annotations
from fastapi import APIRouter, Depends
from api.deps import Services, get_services, require_access
from core.errors import http_error, ErrorCode
from domain.models import TenantProfile, TenantRecord
from schemas.identity import TenantCreateIn

router = APIRouter(prefix="/api/v1", tags=["tenants"])


@router.get("/admin/tenants", response_model=list[TenantRecord])
def list_tenants(
    _: TenantProfile = Depends(require_access(super_admin=True)),
    services: Services = Depends(get_services),
):
    """All tenants with their license keys."""
    return services.registry.list_tenants()


@router.post("/admin/tenants", response_model=TenantRecord, status_code=201)
def create_tenant(
    body: TenantCreateIn,
    _: TenantProfile = Depends(require_access(super_admin=True)),
    services: Services = Depends(get_services),
):
    """
    Provision a new company.

    Returns:
        The tenant record including its generated manager/employee keys

    Raises:
        409 already_exists if the derived slug is taken
    """
    return services.registry.create_tenant(body.name)


@router.delete("/admin/tenants/{tenant}")
def delete_tenant(
    tenant: str,
    profile: TenantProfile = Depends(require_access(super_admin=True)),
    services: Services = Depends(get_services),
) -> dict:
    """Delete a tenant record. Member profiles are not removed."""
    services.registry.delete_tenant(tenant, actor_id=profile.credential_id)
    return {"ok": True, "tenant": tenant}


@router.get("/tenants/{tenant}")
def tenant_info(tenant: str, services: Services = Depends(get_services)) -> dict:
    """Public name of a tenant for its login/signup pages (no keys)."""
    record = services.registry.get_tenant(tenant)
    if record is None:
        raise http_error(
            status_code=404,
            code=ErrorCode.TENANT_NOT_FOUND,
            message="Tenant not found",
            meta={"tenant": tenant},
        )
    return {"slug": record.slug, "name": record.name}
