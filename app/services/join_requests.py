"""
Human-approved join requests (role elevation without an access code).

Status moves one way only: pending -> approved | rejected. The transition is
a compare-and-set on the request document, so approve/reject happen exactly
once and a request never produces two profiles. A second decision on a
terminal request is an explicit REQUEST_ALREADY_PROCESSED error.
"""
from __future__ import annotations
import uuid
from typing import Optional
from pydantic import BaseModel
from core.errors import Conflict, EmailInUse, ErrorCode, NotFound, ValidationFailed
from core.logger import log_security_event
from core.security import placeholder_password
from domain.models import (
    APPROVER_ROLE,
    ROLE_PERMISSIONS,
    JoinRequest,
    JoinRequestStatus,
    ProfileStatus,
    Role,
    TenantProfile,
    utcnow,
)
from repositories.join_request_repo import JoinRequestRepository
from repositories.profile_repo import ProfileRepository
from repositories.tenant_repository import TenantRepository
from services.authenticator import Authenticator, normalize_email


class RequesterInfo(BaseModel):
    name: str
    email: str


class JoinRequestWorkflow:
    def __init__(
        self,
        requests: JoinRequestRepository,
        profiles: ProfileRepository,
        tenants: TenantRepository,
        authenticator: Authenticator,
    ):
        self.requests = requests
        self.profiles = profiles
        self.tenants = tenants
        self.authenticator = authenticator

    def submit(
        self,
        requester: RequesterInfo,
        requested_role: Role,
        approver_email: str,
        tenant_slug: str,
        credential_id: Optional[str] = None,
    ) -> JoinRequest:
        """Queue a pending request. Repeated submissions are allowed."""
        if not requester.name.strip() or not requester.email.strip():
            raise ValidationFailed("Name and email are required")
        if not approver_email or not approver_email.strip():
            raise ValidationFailed(
                f"An approver email is required ({APPROVER_ROLE[requested_role]})",
                meta={"approver_role": APPROVER_ROLE[requested_role]},
            )
        if normalize_email(approver_email) == normalize_email(requester.email):
            raise ValidationFailed(
                "The approver must be someone other than the requester",
                code=ErrorCode.APPROVER_IS_REQUESTER,
                meta={"approver_role": APPROVER_ROLE[requested_role]},
            )
        if requested_role == Role.ADMIN and not credential_id:
            raise ValidationFailed(
                "Sign in before requesting admin access",
                code=ErrorCode.CREDENTIAL_REQUIRED,
                meta={"role": requested_role.value},
            )
        if self.tenants.get(tenant_slug) is None:
            raise NotFound(f"Tenant '{tenant_slug}' not found", code=ErrorCode.TENANT_NOT_FOUND,
                           meta={"tenant": tenant_slug})

        req = JoinRequest(
            id=uuid.uuid4().hex,
            tenant_slug=tenant_slug,
            requester_name=requester.name.strip(),
            requester_email=normalize_email(requester.email),
            credential_id=credential_id,
            requested_role=requested_role,
            approver_email=normalize_email(approver_email),
            approver_role=APPROVER_ROLE[requested_role],
        )
        self.requests.create(req)
        log_security_event(
            action="join_request_submit",
            result="success",
            user_id=credential_id,
            tenant_id=tenant_slug,
            meta={"request_id": req.id, "role": requested_role.value},
        )
        return req

    def list_pending_for(self, approver_email: str, role: Optional[Role] = None) -> list[JoinRequest]:
        pending = [
            r for r in self.requests.for_approver(normalize_email(approver_email))
            if r.status == JoinRequestStatus.PENDING and (role is None or r.requested_role == role)
        ]
        return sorted(pending, key=lambda r: r.created_at)

    def get(self, tenant_slug: str, request_id: str) -> JoinRequest:
        req = self.requests.get(tenant_slug, request_id)
        if req is None:
            raise NotFound(
                "Join request not found",
                code=ErrorCode.JOIN_REQUEST_NOT_FOUND,
                meta={"tenant": tenant_slug, "request_id": request_id},
            )
        return req

    @staticmethod
    def _already_processed(req: JoinRequest) -> Conflict:
        return Conflict(
            f"Join request was already {req.status.value}",
            code=ErrorCode.REQUEST_ALREADY_PROCESSED,
            meta={"request_id": req.id, "status": req.status.value},
        )

    def approve(self, tenant_slug: str, request_id: str, decided_by: Optional[str] = None) -> TenantProfile:
        """
        Turn a pending request into an active profile.

        Requests without a credential get one minted with a placeholder
        password; the new id is stored on the request right away, marked as
        minted, so a retry after a later failure reuses it and still sends the
        "set your password" email. EMAIL_IN_USE there leaves the request
        pending for manual reject-and-resubmit.
        """
        req = self.get(tenant_slug, request_id)
        if req.status != JoinRequestStatus.PENDING:
            raise self._already_processed(req)
        tenant = self.tenants.get(tenant_slug)
        if tenant is None:
            raise NotFound(f"Tenant '{tenant_slug}' not found", code=ErrorCode.TENANT_NOT_FOUND,
                           meta={"tenant": tenant_slug})

        minted = req.credential_minted
        credential_id = req.credential_id
        if not credential_id:
            try:
                credential_id = self.authenticator.create_credential(req.requester_email, placeholder_password())
            except EmailInUse:
                log_security_event(
                    action="join_request_approve",
                    result="failure",
                    user_id=decided_by,
                    tenant_id=tenant_slug,
                    meta={"request_id": req.id, "reason": "email_in_use"},
                    level="warning",
                )
                raise Conflict(
                    f"{req.requester_email} already has an account. Reject this request and "
                    "ask the requester to sign in and submit again.",
                    code=ErrorCode.APPROVAL_EMAIL_IN_USE,
                    meta={"request_id": req.id, "email": req.requester_email, "tenant": tenant_slug},
                )
            minted = True
            self.requests.attach_credential(tenant_slug, req.id, credential_id, minted=True)

        now = utcnow()
        profile = TenantProfile(
            credential_id=credential_id,
            tenant_slug=tenant.slug,
            tenant_name=tenant.name,
            name=req.requester_name,
            email=req.requester_email,
            role=req.requested_role,
            status=ProfileStatus.ACTIVE,
            permissions=list(ROLE_PERMISSIONS[req.requested_role]),
            created_by="join_request",
            created_at=now,
            approved_at=now,
        )
        if not self.profiles.create(profile):
            raise Conflict(
                f"{req.requester_email} is already a member of '{tenant.name}'.",
                code=ErrorCode.ALREADY_MEMBER,
                meta={"tenant": tenant_slug, "email": req.requester_email, "request_id": req.id},
            )

        decided = {"decided_at": now.isoformat(), "decided_by": decided_by, "credential_id": credential_id}
        if not self.requests.transition(tenant_slug, req.id, JoinRequestStatus.APPROVED, decided):
            # Another decision won the race; undo our profile so none is left behind.
            self.profiles.delete(tenant_slug, credential_id)
            raise self._already_processed(self.get(tenant_slug, req.id))

        log_security_event(
            action="join_request_approve",
            result="success",
            user_id=decided_by,
            tenant_id=tenant_slug,
            meta={"request_id": req.id, "member": credential_id, "role": req.requested_role.value},
        )
        if minted:
            self.authenticator.send_password_reset(req.requester_email)
        return profile

    def reject(self, tenant_slug: str, request_id: str, decided_by: Optional[str] = None) -> JoinRequest:
        req = self.get(tenant_slug, request_id)
        decided = {"decided_at": utcnow().isoformat(), "decided_by": decided_by}
        if not self.requests.transition(tenant_slug, req.id, JoinRequestStatus.REJECTED, decided):
            raise self._already_processed(self.get(tenant_slug, req.id))
        log_security_event(
            action="join_request_reject",
            result="success",
            user_id=decided_by,
            tenant_id=tenant_slug,
            meta={"request_id": req.id},
        )
        return self.get(tenant_slug, req.id)
