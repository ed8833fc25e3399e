import pytest

from core.errors import AuthFailure, Conflict, EmailInUse, ErrorCode, NotFound, ValidationFailed
from domain.models import ProfileStatus, Role


def test_register_employee_is_active(services, acme, authenticator):
    cred = authenticator.create_credential("jane@acme.io", "secret1")
    profile = services.linker.register_new_identity(cred, "Jane", "Jane@Acme.io", acme.employee_code)

    assert profile.credential_id == cred
    assert profile.tenant_slug == "acme-industries"
    assert profile.tenant_name == "Acme Industries"
    assert profile.email == "jane@acme.io"
    assert profile.role == Role.EMPLOYEE
    assert profile.status == ProfileStatus.ACTIVE
    assert profile.permissions == []
    assert services.profiles.get("acme-industries", cred) == profile


def test_register_manager_uses_elevated_status(services, acme, authenticator):
    cred = authenticator.create_credential("boss@acme.io", "secret1")
    profile = services.linker.register_new_identity(cred, "Boss", "boss@acme.io", acme.manager_code)

    assert profile.role == Role.MANAGER
    assert profile.status == ProfileStatus.ADMIN_BOOTSTRAP
    assert profile.permissions == ["manage_employees", "assign_tasks", "verify_tasks"]


def test_elevated_status_is_configurable(services, acme, authenticator, settings):
    services.linker.settings = settings.model_copy(update={"ELEVATED_PROFILE_STATUS": "pending"})
    cred = authenticator.create_credential("boss@acme.io", "secret1")

    profile = services.linker.register_new_identity(cred, "Boss", "boss@acme.io", acme.manager_code)
    assert profile.status == ProfileStatus.PENDING


def test_name_defaults_to_email_local_part(services, acme):
    profile = services.linker.register_new_identity("cred-1", "", "jane.doe@acme.io", acme.employee_code)
    assert profile.name == "jane.doe"


def test_second_registration_is_already_member_and_keeps_first(services, acme):
    first = services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)

    with pytest.raises(Conflict) as exc:
        services.linker.register_new_identity("cred-1", "Impostor", "jane@acme.io", acme.manager_code)
    assert exc.value.code == ErrorCode.ALREADY_MEMBER

    stored = services.profiles.get("acme-industries", "cred-1")
    assert stored == first
    assert stored.role == Role.EMPLOYEE


def test_tenant_mismatch_names_both_tenants_and_writes_nothing(services, acme):
    services.registry.create_tenant("Globex")

    with pytest.raises(Conflict) as exc:
        services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code, "globex")

    err = exc.value
    assert err.code == ErrorCode.TENANT_MISMATCH
    assert "acme-industries" in err.message and "globex" in err.message
    assert err.meta == {
        "expected_tenant": "globex",
        "actual_tenant": "acme-industries",
        "actual_tenant_name": "Acme Industries",
    }
    assert services.profiles.for_credential("cred-1") == []


def test_link_existing_identity_into_second_tenant(services, acme):
    globex = services.registry.create_tenant("Globex")
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)

    linked = services.linker.link_existing_identity(
        "cred-1", globex.manager_code, "globex", email="jane@acme.io", name="Jane"
    )

    assert linked.tenant_slug == "globex"
    assert linked.role == Role.MANAGER
    assert [p.tenant_slug for p in services.profiles.for_credential("cred-1")] == ["acme-industries", "globex"]


def test_signup_new_email_creates(services, acme, authenticator):
    result = services.linker.signup("new@acme.io", "secret1", "New", acme.employee_code, "acme-industries")

    assert result.outcome == "created"
    assert result.profile.credential_id == authenticator.authenticate("new@acme.io", "secret1")


def test_signup_existing_email_with_right_password_links(services, acme, authenticator):
    globex = services.registry.create_tenant("Globex")
    services.linker.signup("jane@acme.io", "secret1", "Jane", acme.employee_code)

    result = services.linker.signup("jane@acme.io", "secret1", "Jane", globex.employee_code, "globex")

    assert result.outcome == "linked"
    assert result.profile.tenant_slug == "globex"
    assert len(services.resolver.list_profiles_for_credential(result.profile.credential_id)) == 2


def test_signup_existing_email_with_wrong_password(services, acme):
    globex = services.registry.create_tenant("Globex")
    services.linker.signup("jane@acme.io", "secret1", "Jane", acme.employee_code)

    with pytest.raises(AuthFailure) as exc:
        services.linker.signup("jane@acme.io", "wrong-pass", "Jane", globex.employee_code)
    assert exc.value.code == ErrorCode.WRONG_PASSWORD_EXISTING_ACCOUNT
    assert exc.value.meta == {"email": "jane@acme.io"}


def test_signup_with_bad_code_creates_no_credential(services, authenticator):
    with pytest.raises(NotFound):
        services.linker.signup("jane@acme.io", "secret1", "Jane", "NOPE-EMP-0000")

    # the email is still free
    assert authenticator.create_credential("jane@acme.io", "secret1")


def test_signup_twice_into_same_tenant_is_already_member(services, acme):
    services.linker.signup("jane@acme.io", "secret1", "Jane", acme.employee_code)

    with pytest.raises(Conflict) as exc:
        services.linker.signup("jane@acme.io", "secret1", "Jane", acme.employee_code)
    assert exc.value.code == ErrorCode.ALREADY_MEMBER


def test_provision_member(services, acme, authenticator):
    profile = services.linker.provision_member("acme-industries", "Sam", "Sam@acme.io", Role.MANAGER)

    assert profile.status == ProfileStatus.ACTIVE
    assert profile.created_by == "admin"
    assert profile.approved_at is not None
    assert profile.email == "sam@acme.io"
    assert authenticator.reset_requests == ["sam@acme.io"]


def test_provision_member_email_in_use(services, acme, authenticator):
    authenticator.create_credential("sam@acme.io", "secret1")

    with pytest.raises(EmailInUse):
        services.linker.provision_member("acme-industries", "Sam", "sam@acme.io", Role.EMPLOYEE)
    assert services.profiles.for_tenant("acme-industries") == []
    assert authenticator.reset_requests == []


def test_provision_member_unknown_tenant(services):
    with pytest.raises(NotFound) as exc:
        services.linker.provision_member("ghost", "Sam", "sam@acme.io", Role.EMPLOYEE)
    assert exc.value.code == ErrorCode.TENANT_NOT_FOUND


def test_link_without_email_copies_existing_membership(services, acme):
    globex = services.registry.create_tenant("Globex")
    services.linker.register_new_identity("cred-1", "Jane", "jane@acme.io", acme.employee_code)

    linked = services.linker.link_existing_identity("cred-1", globex.employee_code)
    assert (linked.email, linked.name) == ("jane@acme.io", "Jane")

    with pytest.raises(Conflict) as exc:
        services.linker.link_existing_identity("cred-1", globex.employee_code)
    assert exc.value.code == ErrorCode.ALREADY_MEMBER
    assert exc.value.message == "jane@acme.io is already a member of 'Globex'."
    assert exc.value.meta["email"] == "jane@acme.io"


def test_link_without_email_needs_an_existing_membership(services, acme):
    with pytest.raises(ValidationFailed):
        services.linker.link_existing_identity("cred-x", acme.employee_code)
    assert services.profiles.for_credential("cred-x") == []
