"""
Authentication, signup and account-linking endpoints.

Follows Layer 1 and Layer 3 rules:
- Validate input with Pydantic schemas
- Return minimal information on login failure
- Signup keeps "wrong password for an existing account" distinct, since it
  decides between retrying and password recovery
- ALWAYS use Pydantic models for request/response
"""
from __future__ import annotations
from fastapi import APIRouter, Depends
from api.deps import Services, get_services
from core.auth import auth_required, Authed, sign_jwt
from core.errors import AuthFailure, ErrorCode, InvalidCredentials
from core.logger import log_security_event
from schemas.identity import (
    LinkIn,
    LoginIn,
    LoginOut,
    MeOut,
    PasswordResetIn,
    SignupIn,
    SignupOut,
    SwitchTenantIn,
    SwitchTenantOut,
)
from services.auth_service import login_issue_token, switch_tenant
from services.authenticator import normalize_email

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=LoginOut)
def login(body: LoginIn, services: Services = Depends(get_services)) -> dict:
    """
    Authenticate a credential and issue a JWT token.

    Args:
        body: Login credentials and optional tenant of the login page

    Returns:
        Dict with token, active profile (or null) and memberships
    """
    return login_issue_token(services.authenticator, services.resolver, body.email, body.password, body.tenant_slug)


@router.get("/me", response_model=MeOut)
def me(auth: Authed = Depends(auth_required), services: Services = Depends(get_services)) -> dict:
    """
    Current credential with its resolved profile and all memberships.

    A null profile means authenticated but not yet placed in any tenant.
    """
    profile = services.resolver.find_profile_for_credential(auth.user_id, tenant_slug=auth.tenant_slug)
    memberships = services.resolver.list_profiles_for_credential(auth.user_id)
    return {
        "ok": True,
        "user_id": auth.user_id,
        "email": auth.email,
        "profile": profile,
        "tenants": [
            {"tenant_slug": p.tenant_slug, "tenant_name": p.tenant_name,
             "role": p.role.value, "status": p.status.value}
            for p in memberships
        ],
    }


@router.post("/switch-tenant", response_model=SwitchTenantOut)
def switch(
    p: SwitchTenantIn,
    auth: Authed = Depends(auth_required),
    services: Services = Depends(get_services),
) -> dict:
    """Switch the active tenant to one the credential is a member of."""
    data = switch_tenant(services.resolver, auth.user_id, auth.email, p.tenant_slug)
    return {"ok": True, **data}


@router.post("/signup", response_model=SignupOut)
def signup(body: SignupIn, services: Services = Depends(get_services)) -> dict:
    """
    Register with an access code.

    If the email already has an account, the password is checked and the
    existing account is linked to the code's tenant instead.
    """
    result = services.linker.signup(body.email, body.password, body.name, body.access_code, body.tenant_slug)
    log_security_event(
        action="signup",
        result=result.outcome,
        user_id=result.profile.credential_id,
        tenant_id=result.profile.tenant_slug,
    )
    token = sign_jwt(result.profile.credential_id, result.profile.email, result.profile.tenant_slug)
    return {"ok": True, "outcome": result.outcome, "token": token, "profile": result.profile}


@router.post("/link", response_model=SignupOut)
def link(body: LinkIn, services: Services = Depends(get_services)) -> dict:
    """Join another tenant with an existing account (password required)."""
    try:
        credential_id = services.authenticator.authenticate(body.email, body.password)
    except InvalidCredentials:
        raise AuthFailure(
            "Account with this email exists, but you entered the wrong password. "
            "Please try again or reset your password.",
            code=ErrorCode.WRONG_PASSWORD_EXISTING_ACCOUNT,
            meta={"email": normalize_email(body.email)},
        )
    profile = services.linker.link_existing_identity(
        credential_id, body.access_code, body.tenant_slug, email=body.email, name=body.name
    )
    token = sign_jwt(credential_id, profile.email, profile.tenant_slug)
    return {"ok": True, "outcome": "linked", "token": token, "profile": profile}


@router.post("/password-reset")
def password_reset(body: PasswordResetIn, services: Services = Depends(get_services)) -> dict:
    """Request a reset email. Always answers ok so accounts cannot be probed."""
    services.authenticator.send_password_reset(body.email)
    return {"ok": True}
