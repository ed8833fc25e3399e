"""
Pydantic schemas for the identity endpoints.

Follows Layer 3 rules:
- ALWAYS use Pydantic models for request/response
- Never expose internal fields that should be hidden (codes only to super-admins)
"""
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from domain.models import JoinRequest, Role, TenantProfile


class LoginIn(BaseModel):
    """Request schema for login."""
    email: EmailStr = Field(..., description="Credential email address")
    password: str = Field(..., description="Credential password")
    tenant_slug: Optional[str] = Field(default=None, description="Tenant of the login page, if tenant-specific")


class Membership(BaseModel):
    tenant_slug: str
    tenant_name: str
    role: str
    status: str


class LoginOut(BaseModel):
    """Response schema for successful login."""
    ok: bool
    token: str
    profile: Optional[TenantProfile] = Field(default=None, description="Active profile; null while unplaced")
    tenants: list[Membership]


class MeOut(BaseModel):
    ok: bool
    user_id: str
    email: str
    profile: Optional[TenantProfile]
    tenants: list[Membership]


class SwitchTenantIn(BaseModel):
    tenant_slug: str = Field(..., description="Target tenant slug")


class SwitchTenantOut(BaseModel):
    ok: bool
    token: str
    profile: TenantProfile


class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    name: str = Field(..., min_length=1)
    access_code: str = Field(..., description="License key issued to the tenant")
    tenant_slug: Optional[str] = Field(default=None, description="Tenant of the signup URL, if any")


class SignupOut(BaseModel):
    ok: bool
    outcome: str = Field(..., description="created | linked")
    token: str
    profile: TenantProfile


class LinkIn(BaseModel):
    email: EmailStr
    password: str
    access_code: str
    tenant_slug: Optional[str] = None
    name: Optional[str] = None


class PasswordResetIn(BaseModel):
    email: EmailStr


class ResolveCodeIn(BaseModel):
    access_code: str = Field(..., description="Raw code as typed or pasted")


class ResolveCodeOut(BaseModel):
    role: Role
    tenant_slug: str
    tenant_name: str


class DecideIn(BaseModel):
    """Client-side routing asks whether a resource may be rendered."""
    tenant_slug: Optional[str] = None
    required_roles: list[Role] = Field(default_factory=list)
    require_super_admin: bool = False


class TenantCreateIn(BaseModel):
    name: str = Field(..., description="Company display name")


class ProvisionMemberIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: Role = Role.EMPLOYEE


class JoinRequestIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: Role = Role.EMPLOYEE
    approver_email: EmailStr = Field(..., description="Manager (employee), admin (manager) or super-admin (admin)")


class JoinRequestList(BaseModel):
    items: list[JoinRequest]
