"""
Creation of tenant profiles for credentials.

Follows Layer 1 and Layer 6 rules:
- Never logs passwords or access codes
- Every membership change emits a security event

A profile is written create-if-absent on (tenant_slug, credential_id), so a
repeated registration or link is rejected with ALREADY_MEMBER instead of
overwriting the existing membership.
"""
from __future__ import annotations
from typing import Optional
from core.config import Settings
from core.errors import (
    AuthFailure,
    Conflict,
    EmailInUse,
    ErrorCode,
    InvalidCredentials,
    NotFound,
    ValidationFailed,
)
from core.logger import log_security_event
from core.security import placeholder_password
from domain.models import (
    ROLE_PERMISSIONS,
    CodeResolution,
    ProfileStatus,
    Role,
    SignupResult,
    TenantProfile,
    utcnow,
)
from repositories.profile_repo import ProfileRepository
from repositories.tenant_repository import TenantRepository
from services.access_codes import AccessCodeResolver
from services.authenticator import Authenticator, normalize_email


def display_name_for(email: str) -> str:
    return email.split("@")[0]


class IdentityLinker:
    def __init__(
        self,
        profiles: ProfileRepository,
        tenants: TenantRepository,
        resolver: AccessCodeResolver,
        authenticator: Authenticator,
        settings: Settings,
    ):
        self.profiles = profiles
        self.tenants = tenants
        self.resolver = resolver
        self.authenticator = authenticator
        self.settings = settings

    # ---------- helpers ----------

    def _resolve_for(self, raw_code: str, expected_tenant_slug: Optional[str]) -> CodeResolution:
        resolved = self.resolver.resolve(raw_code)
        if expected_tenant_slug and resolved.tenant_slug != expected_tenant_slug:
            log_security_event(
                action="profile_create",
                result="failure",
                tenant_id=expected_tenant_slug,
                meta={"reason": "tenant_mismatch", "actual_tenant": resolved.tenant_slug},
                level="warning",
            )
            raise Conflict(
                f"This License Key belongs to '{resolved.tenant_name}' ({resolved.tenant_slug}), "
                f"but you are trying to register for '{expected_tenant_slug}'. "
                "Please check your URL or Key.",
                code=ErrorCode.TENANT_MISMATCH,
                meta={
                    "expected_tenant": expected_tenant_slug,
                    "actual_tenant": resolved.tenant_slug,
                    "actual_tenant_name": resolved.tenant_name,
                },
            )
        return resolved

    def _status_for(self, role: Role) -> ProfileStatus:
        if role == Role.EMPLOYEE:
            return ProfileStatus.ACTIVE
        return ProfileStatus(self.settings.ELEVATED_PROFILE_STATUS)

    def _write(self, profile: TenantProfile, action: str) -> TenantProfile:
        if not self.profiles.create(profile):
            log_security_event(
                action=action,
                result="failure",
                user_id=profile.credential_id,
                tenant_id=profile.tenant_slug,
                meta={"reason": "already_member"},
            )
            raise Conflict(
                f"{profile.email} is already a member of '{profile.tenant_name}'.",
                code=ErrorCode.ALREADY_MEMBER,
                meta={"tenant": profile.tenant_slug, "email": profile.email},
            )
        log_security_event(
            action=action,
            result="success",
            user_id=profile.credential_id,
            tenant_id=profile.tenant_slug,
            meta={"role": profile.role.value, "status": profile.status.value},
        )
        return profile

    def _profile(self, credential_id, name, email, resolved: CodeResolution, **extra) -> TenantProfile:
        values = dict(
            credential_id=credential_id,
            tenant_slug=resolved.tenant_slug,
            tenant_name=resolved.tenant_name,
            name=name,
            email=normalize_email(email),
            role=resolved.role,
            status=self._status_for(resolved.role),
            permissions=list(ROLE_PERMISSIONS[resolved.role]),
        )
        values.update(extra)
        return TenantProfile(**values)

    # ---------- operations ----------

    def register_new_identity(
        self,
        credential_id: str,
        name: str,
        email: str,
        raw_code: str,
        expected_tenant_slug: Optional[str] = None,
    ) -> TenantProfile:
        """Create the first profile of a freshly created credential."""
        resolved = self._resolve_for(raw_code, expected_tenant_slug)
        profile = self._profile(credential_id, name or display_name_for(email), email, resolved)
        return self._write(profile, "profile_create")

    def link_existing_identity(
        self,
        credential_id: str,
        raw_code: str,
        expected_tenant_slug: Optional[str] = None,
        *,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> TenantProfile:
        """
        Add a membership in another tenant to an existing credential.

        The caller must have re-authenticated the credential first; this only
        writes the profile. Without `email`, email and name are copied from
        the credential's existing profile.

        Raises:
            ValidationFailed: no email given and the credential has no profile yet
        """
        resolved = self._resolve_for(raw_code, expected_tenant_slug)
        if not email:
            existing = self.profiles.for_credential(credential_id)
            if not existing:
                raise ValidationFailed(
                    "An email is required to link an account with no existing membership",
                    meta={"tenant": resolved.tenant_slug},
                )
            email = existing[0].email
            name = name or existing[0].name
        profile = self._profile(credential_id, name or display_name_for(email), email, resolved)
        return self._write(profile, "profile_link")

    def signup(
        self,
        email: str,
        password: str,
        name: str,
        raw_code: str,
        expected_tenant_slug: Optional[str] = None,
    ) -> SignupResult:
        """
        Register with an access code, falling back to linking when the email
        already has a credential.

        ATTEMPT_CREATE -> DONE, or on EMAIL_IN_USE -> ATTEMPT_LINK (password
        re-check) -> DONE. A wrong password on the link path raises
        WRONG_PASSWORD_EXISTING_ACCOUNT so the user knows to retry or reset.
        The credential is the commit point: if the profile write fails after
        it was created, the next attempt goes through the link path.
        """
        # Verify the code up front so a bad code never mints a credential.
        self._resolve_for(raw_code, expected_tenant_slug)
        try:
            credential_id = self.authenticator.create_credential(email, password)
        except EmailInUse:
            try:
                credential_id = self.authenticator.authenticate(email, password)
            except InvalidCredentials:
                log_security_event(
                    action="signup",
                    result="failure",
                    tenant_id=expected_tenant_slug,
                    meta={"reason": "wrong_password_existing_account", "email": normalize_email(email)},
                    level="warning",
                )
                raise AuthFailure(
                    "Account with this email exists, but you entered the wrong password. "
                    "Please try again or reset your password.",
                    code=ErrorCode.WRONG_PASSWORD_EXISTING_ACCOUNT,
                    meta={"email": normalize_email(email)},
                )
            profile = self.link_existing_identity(
                credential_id, raw_code, expected_tenant_slug, email=email, name=name
            )
            return SignupResult(profile=profile, outcome="linked")

        profile = self.register_new_identity(credential_id, name, email, raw_code, expected_tenant_slug)
        return SignupResult(profile=profile, outcome="created")

    def provision_member(
        self,
        tenant_slug: str,
        name: str,
        email: str,
        role: Role,
    ) -> TenantProfile:
        """
        Admin-side member creation: mint a credential with a placeholder
        password, write an active profile and send a "set your password" mail.
        """
        tenant = self.tenants.get(tenant_slug)
        if tenant is None:
            raise NotFound(f"Tenant '{tenant_slug}' not found", code=ErrorCode.TENANT_NOT_FOUND,
                           meta={"tenant": tenant_slug})
        credential_id = self.authenticator.create_credential(email, placeholder_password())
        resolved = CodeResolution(role=role, tenant_slug=tenant.slug, tenant_name=tenant.name)
        profile = self._profile(
            credential_id, name, email, resolved,
            status=ProfileStatus.ACTIVE,
            created_by="admin",
            approved_at=utcnow(),
        )
        self._write(profile, "profile_create")
        self.authenticator.send_password_reset(email)
        return profile
