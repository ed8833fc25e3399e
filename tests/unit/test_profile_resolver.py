from domain.models import Role


def test_round_trip_after_register(services, acme):
    created = services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)

    found = services.resolver.find_profile_for_credential("cred-1", touch=False)
    assert found == created


def test_unplaced_credential_resolves_to_none(services, acme):
    assert services.resolver.find_profile_for_credential("nobody") is None
    assert services.resolver.find_profile_for_credential("nobody", tenant_slug="acme-industries") is None


def test_touch_updates_last_authenticated_at(services, acme):
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)

    returned = services.resolver.find_profile_for_credential("cred-1")

    assert returned.last_authenticated_at is None
    assert services.profiles.get("acme-industries", "cred-1").last_authenticated_at is not None


def test_touch_failure_does_not_fail_the_read(services, acme, monkeypatch):
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)

    def broken(*args, **kwargs):
        raise RuntimeError("store write failed")

    monkeypatch.setattr(services.profiles, "touch", broken)

    profile = services.resolver.find_profile_for_credential("cred-1")
    assert profile is not None
    assert profile.role == Role.EMPLOYEE


def test_multi_tenant_credential_gets_deterministic_first_match(services, acme):
    zeta = services.registry.create_tenant("Zeta")
    alpha = services.registry.create_tenant("Alpha")
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", zeta.employee_code)
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", alpha.manager_code)

    picks = {services.resolver.find_profile_for_credential("cred-1", touch=False).tenant_slug for _ in range(5)}
    assert picks == {"acme-industries"}

    scoped = services.resolver.find_profile_for_credential("cred-1", tenant_slug="alpha", touch=False)
    assert scoped.role == Role.MANAGER


def test_find_super_admin_profile(services, acme):
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)
    assert services.resolver.find_super_admin_profile("cred-1") is None

    profile = services.profiles.get("acme-industries", "cred-1")
    services.profiles.delete("acme-industries", "cred-1")
    services.profiles.create(profile.model_copy(update={"is_super_admin": True}))

    assert services.resolver.find_super_admin_profile("cred-1").tenant_slug == "acme-industries"
