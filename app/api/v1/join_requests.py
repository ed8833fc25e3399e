"""
Join-request endpoints: submit, approver inbox, approve / reject.

Follows Layer 2 rules:
- Only the named approver holding the approver role in the tenant (or a
  super-admin) may decide a request; the named email alone is not enough
- Submitting is public; a signed-in requester's credential is attached
"""
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends
from api.deps import Services, get_services, resolve_caller_profile
from core.auth import Authed, auth_optional, auth_required
from core.errors import http_error, ErrorCode
from core.roles import authorize
from domain.models import SUPER_ADMIN_APPROVER, JoinRequest, Role, TenantProfile
from schemas.identity import JoinRequestIn, JoinRequestList
from services.join_requests import RequesterInfo

router = APIRouter(prefix="/api/v1", tags=["join-requests"])


def _ensure_approver(services: Services, auth: Authed, req: JoinRequest) -> None:
    """
    A super-admin may decide any request. Otherwise the caller must be the
    approver named on the request and hold the approver role in its tenant;
    admin requests are super-admin only.
    """
    if services.resolver.find_super_admin_profile(auth.user_id) is not None:
        return
    if req.approver_role != SUPER_ADMIN_APPROVER and auth.email.lower() == req.approver_email:
        profile = resolve_caller_profile(services, auth, req.tenant_slug)
        if authorize(True, profile, req.tenant_slug, [Role(req.approver_role)]).allowed:
            return
    raise http_error(
        status_code=403,
        code=ErrorCode.FORBIDDEN,
        message="Only the approver of this request can decide it",
        meta={"request_id": req.id, "approver_role": req.approver_role},
    )


@router.post("/tenants/{slug}/join-requests", response_model=JoinRequest, status_code=201)
def submit_join_request(
    slug: str,
    body: JoinRequestIn,
    auth: Optional[Authed] = Depends(auth_optional),
    services: Services = Depends(get_services),
):
    return services.join_requests.submit(
        RequesterInfo(name=body.name, email=body.email),
        body.role,
        body.approver_email,
        slug,
        credential_id=auth.user_id if auth else None,
    )


@router.get("/join-requests/pending", response_model=JoinRequestList)
def pending_join_requests(
    role: Optional[Role] = None,
    auth: Authed = Depends(auth_required),
    services: Services = Depends(get_services),
):
    """Pending requests naming the caller's email as approver."""
    return {"items": services.join_requests.list_pending_for(auth.email, role)}


@router.post("/tenants/{slug}/join-requests/{request_id}/approve", response_model=TenantProfile)
def approve_join_request(
    slug: str,
    request_id: str,
    auth: Authed = Depends(auth_required),
    services: Services = Depends(get_services),
):
    req = services.join_requests.get(slug, request_id)
    _ensure_approver(services, auth, req)
    return services.join_requests.approve(slug, request_id, decided_by=auth.user_id)


@router.post("/tenants/{slug}/join-requests/{request_id}/reject", response_model=JoinRequest)
def reject_join_request(
    slug: str,
    request_id: str,
    auth: Authed = Depends(auth_required),
    services: Services = Depends(get_services),
):
    req = services.join_requests.get(slug, request_id)
    _ensure_approver(services, auth, req)
    return services.join_requests.reject(slug, request_id, decided_by=auth.user_id)
