"""
Tenant-scoped document store contract.

Follows Layer 4 rules:
- Data access MUST be routed through repository layer
- All queries are tenant-scoped, except the explicit cross-tenant lookups
  (`query_all`) used for access codes, profile resolution and approver inboxes

Documents are JSON-compatible dicts addressed by (kind, tenant_slug, doc_id).
Tenant records themselves live under kind "tenant" with tenant_slug == doc_id.
"""
from __future__ import annotations
from typing import Any, Optional, Protocol

KIND_TENANT = "tenant"
KIND_PROFILE = "profile"
KIND_JOIN_REQUEST = "join_request"


class TenantStore(Protocol):
    def get(self, kind: str, tenant_slug: str, doc_id: str) -> Optional[dict]:
        ...

    def set(self, kind: str, tenant_slug: str, doc_id: str, data: dict) -> None:
        """Create or replace a document."""
        ...

    def create(self, kind: str, tenant_slug: str, doc_id: str, data: dict) -> bool:
        """Create-if-absent. Returns False when the key is already taken."""
        ...

    def update(self, kind: str, tenant_slug: str, doc_id: str, changes: dict) -> bool:
        """Merge `changes` into an existing document. Returns False if missing."""
        ...

    def compare_and_set(
        self,
        kind: str,
        tenant_slug: str,
        doc_id: str,
        field: str,
        expected: Any,
        changes: dict,
    ) -> bool:
        """Merge `changes` only while `data[field] == expected`, atomically."""
        ...

    def delete(self, kind: str, tenant_slug: str, doc_id: str) -> bool:
        ...

    def query(self, kind: str, tenant_slug: str, field: str, value: Any) -> list[dict]:
        """Field-equality query inside one tenant."""
        ...

    def query_all(self, kind: str, field: str, value: Any) -> list[dict]:
        """
        Cross-tenant field-equality query.

        Results are ordered by (tenant_slug, doc_id) so callers taking the
        first match get a deterministic answer.
        """
        ...

    def list_all(self, kind: str) -> list[dict]:
        ...
