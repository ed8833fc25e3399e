# app/services/access_codes.py
from __future__ import annotations
from core.errors import ErrorCode, NotFound, ValidationFailed
from core.logger import get_logger, log_security_event, redact_code
from domain.models import CodeResolution, Role
from repositories.tenant_repository import TenantRepository

log = get_logger("access_codes")

# Checked in this order so one code can never resolve to two roles
ROLE_PRIORITY = (Role.MANAGER, Role.EMPLOYEE)


def normalize_code(raw_code: str | None) -> str:
    return (raw_code or "").strip().upper()


class AccessCodeResolver:
    """Maps a raw access code to the tenant and role it grants. Read-only."""

    def __init__(self, tenants: TenantRepository):
        self.tenants = tenants

    def resolve(self, raw_code: str | None) -> CodeResolution:
        code = normalize_code(raw_code)
        if not code:
            raise ValidationFailed("Access Code is required", code=ErrorCode.CODE_REQUIRED)

        for role in ROLE_PRIORITY:
            tenant = self.tenants.find_by_code(role, code)
            if tenant is not None:
                log.debug("Access code matched", extra={"tenant_id": tenant.slug, "meta": {"role": role.value}})
                return CodeResolution(role=role, tenant_slug=tenant.slug, tenant_name=tenant.name)

        log_security_event(
            action="code_resolve",
            result="failure",
            meta={"reason": "invalid_code", "code": redact_code(code)},
            level="warning",
        )
        raise NotFound(
            "Invalid Access Code. Please check with your administrator.",
            code=ErrorCode.INVALID_CODE,
        )
