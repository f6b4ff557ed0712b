from datetime import timedelta

from cowork.core.security import create_access_token, decode_access_token

from conftest import auth, make_user


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_login_returns_token(client, manager):
    resp = client.post("/api/v1/auth/login", json={"email": "Manager@cowork.test", "password": "secret123"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["access_token"]

    claims = decode_access_token(token)
    assert claims["sub"] == manager.email
    assert claims["role"] == "MANAGER"
    assert claims["branch_id"] == manager.branch_id

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == manager.email


def test_login_with_wrong_password(client, manager):
    resp = client.post("/api/v1/auth/login", json={"email": manager.email, "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Incorrect email or password"


def test_login_missing_fields(client):
    resp = client.post("/api/v1/auth/login", json={"email": "someone@cowork.test"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required fields"


def test_expired_and_garbage_tokens(client, manager):
    expired = create_access_token({"sub": manager.email}, expires_delta=timedelta(minutes=-1))
    assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"}).status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_disabled_user_is_forbidden(client, db, branch):
    user = make_user(db, "gone@cowork.test", "STAFF", branch.id, is_active=False)
    assert client.get("/api/v1/auth/me", headers=auth(user)).status_code == 403


def test_admin_creates_users(client, admin, manager, branch):
    resp = client.post(
        "/api/v1/users",
        json={"email": "lead@cowork.test", "password": "secret123", "role": "TEAM_LEAD", "branch_id": branch.id},
        headers=auth(admin),
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["role"] == "TEAM_LEAD"

    resp = client.post(
        "/api/v1/users",
        json={"email": "lead@cowork.test", "password": "secret123"},
        headers=auth(admin),
    )
    assert resp.status_code == 409

    resp = client.get("/api/v1/users", params={"role": "TEAM_LEAD"}, headers=auth(admin))
    assert [u["email"] for u in resp.json()["data"]] == ["lead@cowork.test"]

    assert client.get("/api/v1/users", headers=auth(manager)).status_code == 403


def test_customer_management(client, manager, staff, branch):
    resp = client.post(
        "/api/v1/customers",
        json={"name": "Acme Ltd", "email": "ops@acme.test", "branch_id": branch.id},
        headers=auth(manager),
    )
    assert resp.status_code == 201, resp.text
    customer_id = resp.json()["data"]["id"]

    resp = client.put(
        f"/api/v1/customers/{customer_id}",
        json={"account_status": "Locked"},
        headers=auth(manager),
    )
    assert resp.json()["data"]["account_status"] == "Locked"

    resp = client.get("/api/v1/customers", params={"search": "acme"}, headers=auth(staff))
    assert resp.json()["pagination"]["total"] == 1

    resp = client.post(
        "/api/v1/customers",
        json={"name": "Dup", "email": "ops@acme.test", "branch_id": branch.id},
        headers=auth(staff),
    )
    assert resp.status_code == 403


def test_package_assignment(client, manager, customer, customer_user):
    resp = client.post(
        "/api/v1/packages",
        json={"name": "Starter", "monthly_hours_limit": 10, "price": "99"},
        headers=auth(manager),
    )
    assert resp.status_code == 201, resp.text
    package_id = resp.json()["data"]["id"]

    resp = client.post(
        f"/api/v1/packages/assign/{customer.id}",
        json={"package_id": package_id},
        headers=auth(manager),
    )
    assert resp.json()["data"]["package_id"] == package_id

    limits = client.get(f"/api/v1/meeting-rooms/limits/{customer.id}", headers=auth(customer_user)).json()
    assert limits["monthly_limit_hours"] == 10

    packages = client.get("/api/v1/packages", headers=auth(customer_user)).json()
    assert [p["name"] for p in packages] == ["Starter"]
