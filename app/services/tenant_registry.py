"""
Tenant registry: provisioning, listing and deletion of tenants.

Follows Layer 4 rules:
- Data access MUST be routed through repository/service layers
- Keep clean separation: API → service → repository → store
"""
from __future__ import annotations
import re
from typing import Optional
from core.config import Settings
from core.errors import Conflict, ErrorCode, NotFound, ValidationFailed
from core.logger import log_security_event
from core.security import random_code_suffix
from domain.models import Role, TenantRecord
from repositories.tenant_repository import TenantRepository

ROLE_TAGS = {
    Role.MANAGER: "MGR",
    Role.EMPLOYEE: "EMP",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(display_name: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', strip edge separators."""
    return _NON_ALNUM.sub("-", display_name.strip().lower()).strip("-")


def format_code(slug: str, tag: str, suffix: str) -> str:
    return f"{slug.upper()}-{tag}-{suffix}"


class TenantRegistry:
    def __init__(self, tenants: TenantRepository, settings: Settings):
        self.tenants = tenants
        self.settings = settings

    def _generate_code(self, slug: str, role: Role, taken: set[str]) -> str:
        for _ in range(self.settings.CODE_MAX_ATTEMPTS):
            code = format_code(slug, ROLE_TAGS[role], random_code_suffix(self.settings.CODE_SUFFIX_LENGTH))
            if code not in taken and not self.tenants.code_in_use(code):
                return code
        raise Conflict(
            "Could not generate a unique access code, please retry",
            code=ErrorCode.CODE_COLLISION,
            meta={"tenant": slug, "role": role.value},
        )

    def create_tenant(self, display_name: str) -> TenantRecord:
        """
        Provision a tenant with one access code per managed role.

        The write is create-if-absent on the slug, so of two concurrent calls
        for the same slug exactly one succeeds.

        Raises:
            ValidationFailed: blank name, or a name with no usable slug
            Conflict: slug already taken (ALREADY_EXISTS) or codes kept colliding
        """
        if not display_name or not display_name.strip():
            raise ValidationFailed("Company name is required", code=ErrorCode.NAME_REQUIRED)
        slug = slugify(display_name)
        if not slug:
            raise ValidationFailed(
                "Company name must contain letters or digits",
                code=ErrorCode.INVALID_NAME,
                meta={"name": display_name},
            )
        if self.tenants.get(slug) is not None:
            raise self._already_exists(slug)

        taken: set[str] = set()
        codes = {}
        for role in ROLE_TAGS:
            codes[role] = self._generate_code(slug, role, taken)
            taken.add(codes[role])

        tenant = TenantRecord(
            slug=slug,
            name=display_name.strip(),
            manager_code=codes[Role.MANAGER],
            employee_code=codes[Role.EMPLOYEE],
        )
        if not self.tenants.create(tenant):
            raise self._already_exists(slug)

        log_security_event(action="tenant_create", result="success", tenant_id=slug)
        return tenant

    @staticmethod
    def _already_exists(slug: str) -> Conflict:
        log_security_event(action="tenant_create", result="failure", tenant_id=slug,
                           meta={"reason": "already_exists"})
        return Conflict(
            f"Company ID '{slug}' already exists.",
            code=ErrorCode.ALREADY_EXISTS,
            meta={"tenant": slug},
        )

    def get_tenant(self, slug: str) -> Optional[TenantRecord]:
        return self.tenants.get(slug)

    def list_tenants(self) -> list[TenantRecord]:
        return self.tenants.list_all()

    def delete_tenant(self, slug: str, actor_id: Optional[str] = None) -> None:
        # Member profiles are left in place; cascading is an external job.
        if not self.tenants.delete(slug):
            raise NotFound(f"Tenant '{slug}' not found", code=ErrorCode.TENANT_NOT_FOUND,
                           meta={"tenant": slug})
        log_security_event(action="tenant_delete", result="success", user_id=actor_id, tenant_id=slug)
