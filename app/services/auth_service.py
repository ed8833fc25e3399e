"""
Authentication service for login and tenant switching.

Follows Layer 1 and Layer 6 rules:
- Validates credentials through the authenticator
- Returns minimal information on failure (no "user not found vs wrong password" distinction)
- Logs security events (login attempts, tenant switches)
- NEVER logs plaintext passwords or hashes
"""
from __future__ import annotations
from typing import Optional
from core.auth import sign_jwt
from core.errors import http_error, ErrorCode, InvalidCredentials
from core.logger import log_security_event
from services.authenticator import Authenticator, normalize_email
from services.profile_resolver import ProfileResolver


def _membership(profile) -> dict:
    return {
        "tenant_slug": profile.tenant_slug,
        "tenant_name": profile.tenant_name,
        "role": profile.role.value,
        "status": profile.status.value,
    }


def login_issue_token(
    authenticator: Authenticator,
    profiles: ProfileResolver,
    email: str,
    password: str,
    tenant_slug: Optional[str] = None,
) -> dict:
    """
    Authenticate a credential and issue a JWT token.

    The active tenant is the one requested (tenant-specific login page) or,
    without one, the profile the resolver picks. An unplaced credential still
    gets a token, with no tenant and no profile, so it can finish onboarding.

    Raises:
        InvalidCredentials: wrong email/password
        HTTPException: 403 when a tenant was requested but the credential is not a member
    """
    try:
        user_id = authenticator.authenticate(email, password)
    except InvalidCredentials:
        log_security_event(
            action="login",
            result="failure",
            tenant_id=tenant_slug,
            meta={"reason": "invalid_credentials", "email": normalize_email(email)},
        )
        raise

    profile = profiles.find_profile_for_credential(user_id, tenant_slug=tenant_slug)
    if tenant_slug and profile is None:
        log_security_event(
            action="login",
            result="failure",
            user_id=user_id,
            tenant_id=tenant_slug,
            meta={"reason": "not_a_member"},
        )
        raise http_error(
            status_code=403,
            code=ErrorCode.FORBIDDEN,
            message=f"This account is not a member of '{tenant_slug}'",
            meta={"tenant": tenant_slug},
        )

    active_tenant = profile.tenant_slug if profile else None
    token = sign_jwt(user_id, normalize_email(email), active_tenant)
    tenants = [_membership(p) for p in profiles.list_profiles_for_credential(user_id)]

    log_security_event(
        action="login",
        result="success",
        user_id=user_id,
        tenant_id=active_tenant,
        meta={"role": profile.role.value if profile else None},
    )

    return {
        "ok": True,
        "token": token,
        "profile": profile,
        "tenants": tenants,
    }


def switch_tenant(profiles: ProfileResolver, user_id: str, email: str, target_tenant_slug: str) -> dict:
    """
    Switch the credential's active tenant and issue a new token.

    Verifies that the credential has a profile in the target tenant.

    Raises:
        HTTPException: 403 if the credential is not in the target tenant
    """
    profile = profiles.find_profile_for_credential(user_id, tenant_slug=target_tenant_slug)
    if profile is None:
        raise http_error(
            status_code=403,
            code=ErrorCode.FORBIDDEN,
            message="User not in target tenant",
            meta={"tenant": target_tenant_slug},
        )

    log_security_event(
        action="tenant_switch",
        result="success",
        user_id=str(user_id),
        tenant_id=target_tenant_slug,
        meta={"role": profile.role.value}
    )

    return {
        "token": sign_jwt(user_id, email, target_tenant_slug),
        "profile": profile,
    }
