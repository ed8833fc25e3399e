# app/repositories/tenant_repository.py
from __future__ import annotations
from typing import Optional
from core.cache import JsonCache
from domain.models import Role, TenantRecord
from repositories.store import KIND_TENANT, TenantStore

# Field holding each role's code on the tenant document
CODE_FIELDS = {
    Role.MANAGER: "manager_code",
    Role.EMPLOYEE: "employee_code",
}


class TenantRepository:
    def __init__(self, store: TenantStore, cache: Optional[JsonCache] = None):
        self.store = store
        self.cache = cache

    def get(self, slug: str) -> Optional[TenantRecord]:
        cache_key = f"tenant:{slug}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached:
                return TenantRecord.model_validate(cached)
        data = self.store.get(KIND_TENANT, slug, slug)
        if not data:
            return None
        if self.cache is not None:
            self.cache.set(cache_key, data)
        return TenantRecord.model_validate(data)

    def create(self, tenant: TenantRecord) -> bool:
        return self.store.create(KIND_TENANT, tenant.slug, tenant.slug, tenant.model_dump(mode="json"))

    def delete(self, slug: str) -> bool:
        removed = self.store.delete(KIND_TENANT, slug, slug)
        if self.cache is not None:
            self.cache.invalidate(f"tenant:{slug}")
        return removed

    def list_all(self) -> list[TenantRecord]:
        return [TenantRecord.model_validate(d) for d in self.store.list_all(KIND_TENANT)]

    def find_by_code(self, role: Role, code: str) -> Optional[TenantRecord]:
        """Single read-only cross-tenant lookup on one role's code field."""
        rows = self.store.query_all(KIND_TENANT, CODE_FIELDS[role], code)
        return TenantRecord.model_validate(rows[0]) if rows else None

    def code_in_use(self, code: str) -> bool:
        return any(self.find_by_code(role, code) for role in CODE_FIELDS)
