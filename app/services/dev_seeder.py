"""
Development seeding: one tenant plus a test account per role.

Only wired up for the in-memory backend. Safe to run repeatedly.
"""
from __future__ import annotations
from core.errors import EmailInUse
from core.logger import get_logger
from domain.models import ROLE_PERMISSIONS, ProfileStatus, Role, TenantProfile, utcnow
from services.tenant_registry import slugify

log = get_logger("seed")

TEST_ACCOUNTS = {
    "employee": {"email": "employee_test@dev.com", "password": "password123", "name": "Dev Employee",
                 "role": Role.EMPLOYEE},
    "manager": {"email": "manager_test@dev.com", "password": "password123", "name": "Dev Manager",
                "role": Role.MANAGER},
    "admin": {"email": "admin_test@dev.com", "password": "password123", "name": "Dev Admin",
              "role": Role.ADMIN},
    "superadmin": {"email": "super_test@dev.com", "password": "password123", "name": "Dev Super Admin",
                   "role": Role.ADMIN, "is_super_admin": True},
}


def _credential_for(authenticator, account: dict) -> str:
    try:
        return authenticator.create_credential(account["email"], account["password"])
    except EmailInUse:
        log.info("Seed account exists, reusing", extra={"meta": {"email": account["email"]}})
        return authenticator.authenticate(account["email"], account["password"])


def seed_dev_tenant(services, name: str = "Prime Commerce") -> dict:
    """
    Ensure the tenant and every TEST_ACCOUNTS profile exist.

    Returns:
        Dict with the tenant record and credential ids per account key
    """
    slug = slugify(name)
    tenant = services.registry.get_tenant(slug) or services.registry.create_tenant(name)

    credentials = {}
    for key, account in TEST_ACCOUNTS.items():
        credential_id = _credential_for(services.authenticator, account)
        credentials[key] = credential_id
        role = account["role"]
        now = utcnow()
        created = services.profiles.create(TenantProfile(
            credential_id=credential_id,
            tenant_slug=tenant.slug,
            tenant_name=tenant.name,
            name=account["name"],
            email=account["email"],
            role=role,
            status=ProfileStatus.ADMIN_BOOTSTRAP if role == Role.ADMIN else ProfileStatus.ACTIVE,
            is_super_admin=account.get("is_super_admin", False),
            permissions=list(ROLE_PERMISSIONS[role]),
            created_by="seed",
            created_at=now,
            approved_at=now,
        ))
        log.info("Seed profile", extra={"tenant_id": tenant.slug,
                                        "meta": {"account": key, "created": created}})

    return {"tenant": tenant, "credentials": credentials}
