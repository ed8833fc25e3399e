"""
Resolution of an authenticated credential to its tenant profile(s).
"""
from __future__ import annotations
from typing import Optional
from core.logger import get_logger
from domain.models import TenantProfile, utcnow
from repositories.profile_repo import ProfileRepository

log = get_logger("profiles")


class ProfileResolver:
    def __init__(self, profiles: ProfileRepository):
        self.profiles = profiles

    def find_profile_for_credential(
        self,
        credential_id: str,
        tenant_slug: Optional[str] = None,
        touch: bool = True,
    ) -> Optional[TenantProfile]:
        """
        Find the credential's profile without knowing its tenant in advance.

        With `tenant_slug`, the exact (tenant, credential) profile is read.
        Without it, every tenant is searched and the first match in
        (tenant_slug, credential_id) order is returned; a credential that is a
        member of several tenants therefore always gets the same one, but
        which tenant that is carries no product meaning.

        Returns None when the credential is not placed in any tenant yet.
        On a hit, `last_authenticated_at` is bumped best-effort; the returned
        profile is the one that was read.
        """
        if tenant_slug:
            profile = self.profiles.get(tenant_slug, credential_id)
        else:
            matches = self.profiles.for_credential(credential_id)
            profile = matches[0] if matches else None

        if profile is None:
            log.info("No tenant profile for credential", extra={"user_id": credential_id})
            return None

        if touch:
            self._touch(profile)
        return profile

    def list_profiles_for_credential(self, credential_id: str) -> list[TenantProfile]:
        return self.profiles.for_credential(credential_id)

    def find_super_admin_profile(self, credential_id: str) -> Optional[TenantProfile]:
        """The flag is platform-wide, so any flagged profile of the credential will do."""
        for profile in self.profiles.for_credential(credential_id):
            if profile.is_super_admin:
                return profile
        return None

    def _touch(self, profile: TenantProfile) -> None:
        try:
            self.profiles.touch(profile.tenant_slug, profile.credential_id, utcnow())
        except Exception:
            # The read already succeeded; a failed timestamp write must not fail it.
            log.warning(
                "Could not update last_authenticated_at",
                exc_info=True,
                extra={"user_id": profile.credential_id, "tenant_id": profile.tenant_slug},
            )
