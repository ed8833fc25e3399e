# app/repositories/join_request_repo.py
from __future__ import annotations
from typing import Optional
from domain.models import JoinRequest, JoinRequestStatus
from repositories.store import KIND_JOIN_REQUEST, TenantStore


class JoinRequestRepository:
    def __init__(self, store: TenantStore):
        self.store = store

    def get(self, tenant_slug: str, request_id: str) -> Optional[JoinRequest]:
        data = self.store.get(KIND_JOIN_REQUEST, tenant_slug, request_id)
        return JoinRequest.model_validate(data) if data else None

    def create(self, req: JoinRequest) -> bool:
        return self.store.create(KIND_JOIN_REQUEST, req.tenant_slug, req.id, req.model_dump(mode="json"))

    def for_approver(self, approver_email: str) -> list[JoinRequest]:
        rows = self.store.query_all(KIND_JOIN_REQUEST, "approver_email", approver_email)
        return [JoinRequest.model_validate(r) for r in rows]

    def attach_credential(
        self, tenant_slug: str, request_id: str, credential_id: str, minted: bool = False
    ) -> bool:
        """Record the credential on the request; `minted` marks one created on approval."""
        return self.store.update(
            KIND_JOIN_REQUEST, tenant_slug, request_id,
            {"credential_id": credential_id, "credential_minted": minted},
        )

    def transition(self, tenant_slug: str, request_id: str, to: JoinRequestStatus, changes: dict) -> bool:
        """pending -> `to`, atomically; False if the request is no longer pending."""
        return self.store.compare_and_set(
            KIND_JOIN_REQUEST,
            tenant_slug,
            request_id,
            "status",
            JoinRequestStatus.PENDING.value,
            {"status": to.value, **changes},
        )
