# app/api/v1/tenants_members.py
from fastapi import APIRouter, Depends
from api.deps import Services, get_services, require_access
from core.logger import log_security_event
from domain.models import Role, TenantProfile
from schemas.identity import ProvisionMemberIn

router = APIRouter(prefix="/api/v1", tags=["team"])


@router.get("/tenants/{slug}/members")
def list_members(
    slug: str,
    auth: TenantProfile = Depends(require_access(Role.MANAGER, Role.ADMIN)),
    services: Services = Depends(get_services),
):
    # require_access resolved the caller inside `slug`, so no cross-tenant reads
    members = sorted(
        services.profiles.for_tenant(slug),
        key=lambda p: (p.name == "", p.name.lower(), p.email),
    )
    return {"items": members}


@router.post("/tenants/{slug}/members", response_model=TenantProfile, status_code=201)
def provision_member(
    slug: str,
    body: ProvisionMemberIn,
    auth: TenantProfile = Depends(require_access(Role.ADMIN)),
    services: Services = Depends(get_services),
):
    profile = services.linker.provision_member(slug, body.name, body.email, body.role)
    log_security_event(
        action="member_provision",
        result="success",
        user_id=auth.credential_id,
        tenant_id=slug,
        meta={"member": profile.credential_id, "role": profile.role.value},
    )
    return profile
