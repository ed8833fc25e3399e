from core.errors import UpstreamUnavailable


def _detail(resp):
    body = resp.json()
    assert set(body) == {"detail"}
    assert {"code", "message"} <= set(body["detail"])
    return body["detail"]


def test_unauthorized_without_token(client):
    r = client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert _detail(r)["code"] == "unauthorized"


def test_garbage_token(client):
    r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401
    assert _detail(r)["code"] == "unauthorized"


def test_blank_access_code_is_422(client):
    r = client.post("/api/v1/access-codes/resolve", json={"access_code": "   "})
    assert r.status_code == 422
    assert _detail(r)["code"] == "code_required"


def test_unknown_access_code_is_404(client):
    r = client.post("/api/v1/access-codes/resolve", json={"access_code": "NOPE-EMP-0000"})
    assert r.status_code == 404
    detail = _detail(r)
    assert detail["code"] == "invalid_code"
    assert detail["message"] == "Invalid Access Code. Please check with your administrator."


def test_tenant_mismatch_is_409_with_both_tenants(client, services, acme):
    services.registry.create_tenant("Globex")
    r = client.post("/api/v1/auth/signup", json={
        "email": "jane@acme.io", "password": "secret1", "name": "Jane",
        "access_code": acme.employee_code, "tenant_slug": "globex",
    })
    assert r.status_code == 409
    detail = _detail(r)
    assert detail["code"] == "tenant_mismatch"
    assert detail["meta"]["expected_tenant"] == "globex"
    assert detail["meta"]["actual_tenant"] == "acme-industries"


def test_wrong_password_on_existing_account_is_401(client, services, acme):
    services.linker.signup("jane@acme.io", "secret1", "Jane", acme.employee_code)
    globex = services.registry.create_tenant("Globex")

    r = client.post("/api/v1/auth/signup", json={
        "email": "jane@acme.io", "password": "wrong-pass", "name": "Jane", "access_code": globex.employee_code,
    })
    assert r.status_code == 401
    assert _detail(r)["code"] == "wrong_password_existing_account"


def test_login_failure_is_generic(client, services, acme):
    services.linker.signup("jane@acme.io", "secret1", "Jane", acme.employee_code)

    wrong = client.post("/api/v1/auth/login", json={"email": "jane@acme.io", "password": "nope"})
    unknown = client.post("/api/v1/auth/login", json={"email": "ghost@acme.io", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert _detail(wrong)["code"] == _detail(unknown)["code"] == "invalid_credentials"


def test_store_outage_is_503(client, store, monkeypatch):
    def down(*args, **kwargs):
        raise UpstreamUnavailable("Document store is unavailable", meta={"backend": "postgres"})

    monkeypatch.setattr(store, "query_all", down)

    r = client.post("/api/v1/access-codes/resolve", json={"access_code": "ACME-EMP-0000"})
    assert r.status_code == 503
    assert _detail(r)["code"] == "upstream_unavailable"


def test_unknown_public_tenant_is_404(client):
    r = client.get("/api/v1/tenants/ghost")
    assert r.status_code == 404
    assert _detail(r)["code"] == "tenant_not_found"
