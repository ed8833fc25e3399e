"""
RBAC (Role-Based Access Control) module for the tenantgate backend.

Follows Layer 2 rules:
- Roles are: employee, manager, admin (lowercase); super-admin is a
  platform flag on the profile, not a tenant role
- RBAC logic MUST live in this dedicated module, not scattered
- The role -> destination mapping is defined here exactly once
- Never trust role or tenant information from the client; always from the
  profile resolved server-side

`authorize` is a pure, total decision function. The HTTP dependency in
api/deps.py and the /access/decide endpoint used by client-side routing both
call it.
"""
from __future__ import annotations
from typing import Iterable, Optional
from core.errors import http_error, ErrorCode
from domain.models import AccessDecision, Role, TenantProfile

LANDING_PATH = "/"
SUPER_ADMIN_DASHBOARD = "/super-admin"

# Per-tenant dashboards, formatted with the tenant slug
ROLE_DASHBOARDS = {
    Role.ADMIN: "/{slug}/admin/dashboard",
    Role.MANAGER: "/{slug}/manager/dashboard",
    Role.EMPLOYEE: "/{slug}/dashboard",
}


def _as_role(value) -> Optional[Role]:
    try:
        return Role(value)
    except ValueError:
        return None


def login_path(tenant_slug: str) -> str:
    return f"/{tenant_slug}/login"


def dashboard_for(profile: TenantProfile) -> str:
    """
    Where a profile belongs: its role's tenant dashboard; the super-admin
    dashboard if the role is unrecognized but the flag is set; otherwise the
    tenant login.
    """
    try:
        template = ROLE_DASHBOARDS[Role(profile.role)]
    except (ValueError, KeyError):
        if profile.is_super_admin:
            return SUPER_ADMIN_DASHBOARD
        return login_path(profile.tenant_slug)
    return template.format(slug=profile.tenant_slug)


def authorize(
    authenticated: bool,
    profile: Optional[TenantProfile],
    tenant_slug: Optional[str] = None,
    required_roles: Iterable[Role | str] = (),
    require_super_admin: bool = False,
) -> AccessDecision:
    """
    Decide whether a request may render its resource.

    1. not authenticated        -> tenant login if the tenant is known, else landing
    2. no resolved profile      -> landing (mid-onboarding)
    3. super-admin required     -> landing unless the profile has the flag
    4. role not in required set -> the profile's own dashboard
    5. otherwise                -> allow

    Args:
        authenticated: Whether a credential is signed in
        profile: Profile resolved for the credential (None if unplaced)
        tenant_slug: Tenant implied by the requested resource, if any
        required_roles: Roles allowed on the resource; empty = any member.
            Unrecognized names match no profile
        require_super_admin: Whether the resource is platform-level

    Returns:
        AccessDecision with allowed, redirect_to and reason
    """
    if not authenticated:
        target = login_path(tenant_slug) if tenant_slug else LANDING_PATH
        return AccessDecision(allowed=False, redirect_to=target, reason="not_authenticated")

    if profile is None:
        return AccessDecision(allowed=False, redirect_to=LANDING_PATH, reason="no_profile")

    if require_super_admin and not profile.is_super_admin:
        return AccessDecision(allowed=False, redirect_to=LANDING_PATH, reason="super_admin_required")

    required = list(required_roles)
    # unknown role names match no profile
    allowed_roles = {r for r in map(_as_role, required) if r is not None}
    if required and _as_role(profile.role) not in allowed_roles:
        return AccessDecision(allowed=False, redirect_to=dashboard_for(profile), reason="role_not_permitted")

    return AccessDecision(allowed=True)


def decision_error(decision: AccessDecision, **meta):
    """
    HTTPException for a denied decision, with a stable error shape.

    401 when nobody is signed in, 403 otherwise; `redirect_to` lets the
    frontend route the user.
    """
    unauthenticated = decision.reason == "not_authenticated"
    return http_error(
        status_code=401 if unauthenticated else 403,
        code=ErrorCode.UNAUTHORIZED if unauthenticated else ErrorCode.FORBIDDEN,
        message="Authentication is required." if unauthenticated
        else "You do not have permission for this action",
        meta={"reason": decision.reason, "redirect_to": decision.redirect_to, **meta},
    )
