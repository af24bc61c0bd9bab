import pytest

from database import USERS

REGISTRATION = {
    "full_name": "Ayse Demir",
    "email": "ayse@example.com",
    "password": "hunter22",
    "phone_number": "+90 555 123 45 67",
    "address": "Spring Street 1",
    "latitude": 39.75,
    "longitude": 30.49,
}


def register(client, **overrides):
    return client.post("/api/auth/register", json={**REGISTRATION, **overrides})


def test_register_creates_inactive_customer(client, db):
    response = register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"] == {
        "user_id": "1",
        "full_name": "Ayse Demir",
        "email": "ayse@example.com",
        "is_active": False,
        "role": "customer",
    }
    stored = db[USERS].find_one({"email": "ayse@example.com"})
    assert stored["password_hash"] != "hunter22"
    assert stored["last_login"] is not None


def test_user_ids_are_sequential(client):
    assert register(client).json()["user"]["user_id"] == "1"
    assert register(client, email="second@example.com").json()["user"]["user_id"] == "2"


def test_duplicate_email_is_rejected(client, db):
    assert register(client).status_code == 201
    response = register(client, full_name="Someone Else")
    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]
    assert db[USERS].count_documents({"email": "ayse@example.com"}) == 1


def test_register_rejects_invalid_email(client):
    assert register(client, email="not-an-email").status_code == 422


def test_login_then_me_returns_same_user(client):
    register(client)
    login = client.post("/api/auth/login", json={"email": "ayse@example.com", "password": "hunter22"})
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["address"] == "Spring Street 1"
    assert "password_hash" not in body["user"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "ayse@example.com"
    assert "password_hash" not in me.json()


def test_login_failures_share_one_message(client):
    register(client)
    wrong_password = client.post("/api/auth/login", json={"email": "ayse@example.com", "password": "nope"})
    unknown_user = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "hunter22"})
    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json()["detail"] == unknown_user.json()["detail"]


def test_login_refreshes_last_login(client, db):
    register(client)
    db[USERS].update_one({"user_id": "1"}, {"$set": {"last_login": None}})
    client.post("/api/auth/login", json={"email": "ayse@example.com", "password": "hunter22"})
    assert db[USERS].find_one({"user_id": "1"})["last_login"] is not None


def test_me_for_deleted_user_is_not_found(client, db):
    token = register(client).json()["token"]
    db[USERS].delete_one({"user_id": "1"})
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404


def test_existing_user_ids_do_not_block_new_email(client, db):
    # accounts created before the id counter existed
    db[USERS].insert_many([
        {"user_id": "1", "email": "legacy1@example.com", "password_hash": "x"},
        {"user_id": "2", "email": "legacy2@example.com", "password_hash": "x"},
    ])
    response = register(client, email="new@example.com")
    assert response.status_code == 201
    assert response.json()["user"]["user_id"] == "3"
    assert db[USERS].count_documents({}) == 3


def test_concurrent_duplicate_email_is_conflict(db, monkeypatch):
    import users
    from errors import Conflict
    from schemas import RegisterRequest

    # the up-front email check misses a registration that lands just after it
    real_get_document = users.get_document
    calls = []

    def get_document(db, name, filt, projection=None):
        calls.append(filt)
        if len(calls) == 1:
            db[USERS].insert_one({"user_id": "99", "email": REGISTRATION["email"], "password_hash": "x"})
            return None
        return real_get_document(db, name, filt, projection)

    monkeypatch.setattr(users, "get_document", get_document)
    with pytest.raises(Conflict):
        users.register(db, RegisterRequest(**REGISTRATION))
    assert db[USERS].count_documents({"email": REGISTRATION["email"]}) == 1
