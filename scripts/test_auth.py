"""Account and role endpoints."""

from datetime import timedelta

from conftest import PASSWORD, auth, error_of, register

from b2b_backend.db import User
from b2b_backend.db.tables import utcnow


def test_register_returns_user_and_tokens(client):
    response = client.post("/auth/register", json={"email": "New.User@Example.com", "password": PASSWORD})

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "new.user@example.com"
    assert body["user"]["role"] is None
    assert body["user"]["tutorial_status"] == "incomplete"
    assert body["tokens"]["token_type"] == "bearer"
    assert body["tokens"]["access_token"]


def test_register_rejects_duplicate_email(client):
    register(client, "dup@example.com")

    response = client.post("/auth/register", json={"email": "DUP@example.com", "password": PASSWORD})

    assert response.status_code == 409
    assert error_of(response)["code"] == "EMAIL_EXISTS"


def test_register_validates_email_and_password(client):
    response = client.post("/auth/register", json={"email": "not-an-email", "password": "short"})

    assert response.status_code == 400
    fields = {d["field"] for d in error_of(response)["details"]}
    assert fields == {"email", "password"}


def test_register_requires_letter_and_digit(client):
    response = client.post("/auth/register", json={"email": "a@example.com", "password": "onlyletters"})

    assert response.status_code == 400
    assert "letter and one number" in error_of(response)["details"][0]["message"]


def test_login_with_wrong_password(client):
    register(client, "login@example.com")

    response = client.post("/auth/login", json={"email": "login@example.com", "password": "Wrong12345"})

    assert response.status_code == 401
    assert error_of(response)["message"] == "Invalid credentials"


def test_protected_endpoint_needs_token(client):
    assert client.get("/roles/status").status_code == 401
    bad = client.get("/roles/status", headers=auth("garbage"))
    assert bad.status_code == 401
    assert error_of(bad)["message"] == "Invalid or expired token"


def test_tutorial_status(client):
    user = register(client, "tut@example.com")

    ok = client.patch("/auth/tutorial-status", json={"tutorial_status": "skipped"}, headers=user["headers"])
    bad = client.patch("/auth/tutorial-status", json={"tutorial_status": "done"}, headers=user["headers"])

    assert ok.status_code == 200
    assert ok.json()["user"]["tutorial_status"] == "skipped"
    assert bad.status_code == 400


def test_deactivated_account_is_reactivated_on_login(client, db):
    user = register(client, "sleepy@example.com")
    assert client.post("/auth/deactivate-account", headers=user["headers"]).json()["active"] is False

    response = client.post("/auth/login", json={"email": "sleepy@example.com", "password": PASSWORD})

    assert response.status_code == 200
    assert db.query(User).filter(User.id == user["id"]).one().active is True


def test_delete_account_and_restore_within_grace_period(client, db):
    user = register(client, "gone@example.com")

    first = client.delete("/auth/delete-account", headers=user["headers"])
    second = client.delete("/auth/delete-account", headers=user["headers"])

    assert first.status_code == 200
    assert first.json()["grace_period_days"] == 30
    assert second.status_code == 400
    assert error_of(second)["code"] == "ACCOUNT_ALREADY_DELETED"

    restored = client.post("/auth/login", json={"email": "gone@example.com", "password": PASSWORD})
    assert restored.status_code == 200
    assert db.query(User).filter(User.id == user["id"]).one().deleted_at is None


def test_email_released_after_grace_period(client, db):
    user = register(client, "expired@example.com")
    record = db.query(User).filter(User.id == user["id"]).one()
    record.deleted_at = utcnow() - timedelta(days=31)
    db.commit()

    login = client.post("/auth/login", json={"email": "expired@example.com", "password": PASSWORD})
    again = client.post("/auth/register", json={"email": "expired@example.com", "password": PASSWORD})

    assert login.status_code == 401
    assert again.status_code == 201
    assert again.json()["user"]["id"] != user["id"]


def test_roles_list_status_and_assign(client):
    user = register(client, "roles@example.com")

    names = [r["name"] for r in client.get("/roles").json()]
    before = client.get("/roles/status", headers=user["headers"]).json()
    assigned = client.post("/roles", json={"role": "professional"}, headers=user["headers"])
    after = client.get("/roles/status", headers=user["headers"]).json()

    assert names == ["student", "professional", "business"]
    assert before == {"user_id": user["id"], "role": None, "has_role": False}
    assert assigned.json()["user"]["role"] == "professional"
    assert assigned.json()["tokens"]["access_token"]
    assert after["has_role"] is True


def test_assign_unknown_role(client):
    user = register(client, "badrole@example.com")

    response = client.post("/roles", json={"role": "wizard"}, headers=user["headers"])

    assert response.status_code == 400
    assert error_of(response)["details"][0]["message"] == "Role 'wizard' not found"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
