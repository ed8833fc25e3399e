import threading

import pytest

from core.errors import Conflict, ErrorCode, NotFound, UpstreamUnavailable, ValidationFailed
from domain.models import JoinRequestStatus, ProfileStatus, Role
from services.join_requests import RequesterInfo


def _submit(services, role=Role.EMPLOYEE, email="new@acme.io", credential_id=None, approver="boss@acme.io"):
    return services.join_requests.submit(
        RequesterInfo(name="Newbie", email=email), role, approver, "acme-industries", credential_id=credential_id
    )


def test_submit_queues_pending_request(services, acme):
    req = _submit(services, email="New@Acme.io", approver="Boss@Acme.io")

    assert req.status == JoinRequestStatus.PENDING
    assert req.requester_email == "new@acme.io"
    assert req.approver_email == "boss@acme.io"
    assert req.approver_role == "manager"
    assert services.join_requests.list_pending_for("BOSS@acme.io") == [req]


def test_list_pending_filters_role_and_status(services, acme):
    emp = _submit(services)
    mgr = _submit(services, role=Role.MANAGER, email="lead@acme.io")
    done = _submit(services, email="gone@acme.io")
    services.join_requests.reject("acme-industries", done.id)

    assert [r.id for r in services.join_requests.list_pending_for("boss@acme.io")] == [emp.id, mgr.id]
    assert services.join_requests.list_pending_for("boss@acme.io", Role.MANAGER) == [mgr]
    assert services.join_requests.list_pending_for("someone@acme.io") == []


def test_submit_validation(services, acme):
    with pytest.raises(ValidationFailed):
        services.join_requests.submit(RequesterInfo(name=" ", email="x@acme.io"), Role.EMPLOYEE,
                                      "boss@acme.io", "acme-industries")
    with pytest.raises(ValidationFailed):
        _submit(services, approver="")
    with pytest.raises(ValidationFailed) as exc:
        _submit(services, role=Role.ADMIN)
    assert exc.value.code == ErrorCode.CREDENTIAL_REQUIRED


def test_submit_unknown_tenant(services):
    with pytest.raises(NotFound) as exc:
        _submit(services)
    assert exc.value.code == ErrorCode.TENANT_NOT_FOUND


def test_approve_mints_credential_and_sends_reset(services, acme, authenticator):
    req = _submit(services)

    profile = services.join_requests.approve("acme-industries", req.id, decided_by="boss-cred")

    assert profile.status == ProfileStatus.ACTIVE
    assert profile.created_by == "join_request"
    assert profile.role == Role.EMPLOYEE
    assert authenticator.reset_requests == ["new@acme.io"]

    stored = services.join_requests.get("acme-industries", req.id)
    assert stored.status == JoinRequestStatus.APPROVED
    assert stored.decided_by == "boss-cred"
    assert stored.decided_at is not None
    assert stored.credential_id == profile.credential_id


def test_approve_with_existing_credential_sends_no_reset(services, acme, authenticator):
    cred = authenticator.create_credential("lead@acme.io", "secret1")
    req = _submit(services, role=Role.ADMIN, email="lead@acme.io", credential_id=cred)

    profile = services.join_requests.approve("acme-industries", req.id)

    assert profile.credential_id == cred
    assert profile.role == Role.ADMIN
    assert profile.permissions == ["manage_managers", "manage_company", "view_all_reports"]
    assert authenticator.reset_requests == []


def test_reject_then_approve_is_already_processed(services, acme):
    req = _submit(services)
    rejected = services.join_requests.reject("acme-industries", req.id, decided_by="boss-cred")
    assert rejected.status == JoinRequestStatus.REJECTED

    with pytest.raises(Conflict) as exc:
        services.join_requests.approve("acme-industries", req.id)
    assert exc.value.code == ErrorCode.REQUEST_ALREADY_PROCESSED
    assert services.profiles.for_tenant("acme-industries") == []


def test_second_approval_is_already_processed(services, acme):
    req = _submit(services)
    services.join_requests.approve("acme-industries", req.id)

    with pytest.raises(Conflict) as exc:
        services.join_requests.approve("acme-industries", req.id)
    assert exc.value.code == ErrorCode.REQUEST_ALREADY_PROCESSED
    with pytest.raises(Conflict):
        services.join_requests.reject("acme-industries", req.id)
    assert len(services.profiles.for_tenant("acme-industries")) == 1


def test_concurrent_approvals_yield_one_profile(services, acme, authenticator):
    cred = authenticator.create_credential("new@acme.io", "secret1")
    req = _submit(services, credential_id=cred)
    barrier = threading.Barrier(4)
    outcomes = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            services.join_requests.approve("acme-industries", req.id)
            result = "ok"
        except Conflict as e:
            result = e.code
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert len(services.profiles.for_tenant("acme-industries")) == 1
    assert services.join_requests.get("acme-industries", req.id).status == JoinRequestStatus.APPROVED


def test_approve_email_in_use_leaves_request_pending(services, acme, authenticator):
    authenticator.create_credential("new@acme.io", "secret1")
    req = _submit(services)

    with pytest.raises(Conflict) as exc:
        services.join_requests.approve("acme-industries", req.id)
    assert exc.value.code == ErrorCode.APPROVAL_EMAIL_IN_USE
    assert services.join_requests.get("acme-industries", req.id).status == JoinRequestStatus.PENDING
    assert services.profiles.for_tenant("acme-industries") == []


def test_lost_transition_removes_the_new_profile(services, acme, monkeypatch):
    req = _submit(services)
    monkeypatch.setattr(services.join_requests.requests, "transition", lambda *a, **kw: False)

    with pytest.raises(Conflict) as exc:
        services.join_requests.approve("acme-industries", req.id)
    assert exc.value.code == ErrorCode.REQUEST_ALREADY_PROCESSED
    assert services.profiles.for_tenant("acme-industries") == []


def test_get_unknown_request(services, acme):
    with pytest.raises(NotFound) as exc:
        services.join_requests.get("acme-industries", "missing")
    assert exc.value.code == ErrorCode.JOIN_REQUEST_NOT_FOUND


def test_requester_cannot_name_themselves_approver(services, acme):
    with pytest.raises(ValidationFailed) as exc:
        _submit(services, email="jane@acme.io", approver=" JANE@acme.io ")
    assert exc.value.code == ErrorCode.APPROVER_IS_REQUESTER
    assert services.join_requests.list_pending_for("jane@acme.io") == []


def test_retry_after_failed_profile_write_still_sends_reset(services, acme, authenticator, monkeypatch):
    req = _submit(services)
    create = services.profiles.create
    calls = []

    def flaky_create(profile):
        calls.append(profile.credential_id)
        if len(calls) == 1:
            raise UpstreamUnavailable("Document store is unavailable")
        return create(profile)

    monkeypatch.setattr(services.profiles, "create", flaky_create)

    with pytest.raises(UpstreamUnavailable):
        services.join_requests.approve("acme-industries", req.id)
    pending = services.join_requests.get("acme-industries", req.id)
    assert pending.status == JoinRequestStatus.PENDING
    assert pending.credential_minted and pending.credential_id
    assert authenticator.reset_requests == []

    profile = services.join_requests.approve("acme-industries", req.id)

    assert profile.credential_id == pending.credential_id
    assert calls == [pending.credential_id, pending.credential_id]
    assert authenticator.reset_requests == ["new@acme.io"]
