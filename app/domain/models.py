from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class ProfileStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    ADMIN_BOOTSTRAP = "admin-bootstrap"


class JoinRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


SUPER_ADMIN_APPROVER = "super-admin"

# Who approves a request for each role (super-admin is platform level)
APPROVER_ROLE = {
    Role.EMPLOYEE: Role.MANAGER.value,
    Role.MANAGER: Role.ADMIN.value,
    Role.ADMIN: SUPER_ADMIN_APPROVER,
}

ROLE_PERMISSIONS = {
    Role.EMPLOYEE: [],
    Role.MANAGER: ["manage_employees", "assign_tasks", "verify_tasks"],
    Role.ADMIN: ["manage_managers", "manage_company", "view_all_reports"],
}


class TenantRecord(BaseModel):
    slug: str
    name: str
    manager_code: str
    employee_code: str
    subscription_status: str = "active"
    created_at: datetime = Field(default_factory=utcnow)


class CodeResolution(BaseModel):
    role: Role
    tenant_slug: str
    tenant_name: str


class TenantProfile(BaseModel):
    """Membership of one credential in one tenant, keyed by (tenant_slug, credential_id)."""
    credential_id: str
    tenant_slug: str
    tenant_name: str
    name: str
    email: str
    role: Role
    status: ProfileStatus
    is_super_admin: bool = False
    permissions: list[str] = Field(default_factory=list)
    created_by: Literal["code", "join_request", "admin", "seed"] = "code"
    created_at: datetime = Field(default_factory=utcnow)
    last_authenticated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None


class JoinRequest(BaseModel):
    id: str
    tenant_slug: str
    requester_name: str
    requester_email: str
    credential_id: Optional[str] = None
    credential_minted: bool = False
    requested_role: Role
    approver_email: str
    approver_role: str
    status: JoinRequestStatus = JoinRequestStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None


class SignupResult(BaseModel):
    profile: TenantProfile
    outcome: Literal["created", "linked"]


class AccessDecision(BaseModel):
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[
        Literal["not_authenticated", "no_profile", "super_admin_required", "role_not_permitted"]
    ] = None
