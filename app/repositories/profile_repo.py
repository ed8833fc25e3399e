# app/repositories/profile_repo.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
from domain.models import TenantProfile
from repositories.store import KIND_PROFILE, TenantStore


class ProfileRepository:
    """TenantProfile documents; the doc id inside a tenant is the credential id."""

    def __init__(self, store: TenantStore):
        self.store = store

    def get(self, tenant_slug: str, credential_id: str) -> Optional[TenantProfile]:
        data = self.store.get(KIND_PROFILE, tenant_slug, credential_id)
        return TenantProfile.model_validate(data) if data else None

    def create(self, profile: TenantProfile) -> bool:
        return self.store.create(
            KIND_PROFILE, profile.tenant_slug, profile.credential_id, profile.model_dump(mode="json")
        )

    def delete(self, tenant_slug: str, credential_id: str) -> bool:
        return self.store.delete(KIND_PROFILE, tenant_slug, credential_id)

    def for_credential(self, credential_id: str) -> list[TenantProfile]:
        rows = self.store.query_all(KIND_PROFILE, "credential_id", credential_id)
        return [TenantProfile.model_validate(r) for r in rows]

    def for_tenant(self, tenant_slug: str) -> list[TenantProfile]:
        rows = self.store.query(KIND_PROFILE, tenant_slug, "tenant_slug", tenant_slug)
        return [TenantProfile.model_validate(r) for r in rows]

    def touch(self, tenant_slug: str, credential_id: str, at: datetime) -> bool:
        return self.store.update(
            KIND_PROFILE, tenant_slug, credential_id, {"last_authenticated_at": at.isoformat()}
        )
