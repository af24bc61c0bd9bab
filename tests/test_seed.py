from database import PRODUCTS, USERS


def test_seed_creates_catalog_and_admin(client, db):
    response = client.post("/api/seed")
    assert response.status_code == 200
    assert response.json()["message"] == "Seed data created"
    assert db[PRODUCTS].count_documents({}) == 3
    admin = db[USERS].find_one({"user_id": "0"})
    assert admin["role"] == "admin"
    assert admin["is_active"] is True


def test_seed_runs_once(client, db):
    client.post("/api/seed")
    response = client.post("/api/seed")
    assert response.json()["message"] == "Data already exists"
    assert db[PRODUCTS].count_documents({}) == 3


def test_seeded_admin_can_log_in_and_browse(client):
    client.post("/api/seed")
    login = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "admin-pass"})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "admin"

    headers = {"Authorization": f"Bearer {login.json()['token']}"}
    products = client.get("/api/products", headers=headers).json()
    assert [p["product_id"] for p in products] == ["SU_0", "SU_1", "SU_2"]
    jug = client.get("/api/products/SU_0", headers=headers).json()
    assert jug["price"] == 100
    assert jug["weight"] == {"value": 19, "unit": "kg"}


def test_registration_after_seed_does_not_reuse_admin_id(client):
    client.post("/api/seed")
    response = client.post("/api/auth/register", json={
        "full_name": "First Customer",
        "email": "first@example.com",
        "password": "pw",
        "phone_number": "+90 555 000 00 01",
        "address": "Main Street 3",
    })
    assert response.json()["user"]["user_id"] == "1"


def test_seed_disabled(client, settings):
    settings.enable_seed = False
    assert client.post("/api/seed").status_code == 404


def test_unknown_product_is_not_found(client, make_user, headers_for):
    user = make_user()
    assert client.get("/api/products/SU_99", headers=headers_for(user)).status_code == 404


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/test").json()["backend"] == "✅ Running"


def test_health_reports_configured_settings(client, settings):
    settings.database_url = "mongodb://db.internal:27017"
    settings.database_name = "water"
    body = client.get("/test").json()
    assert body["database_url"] == "✅ Set"
    assert body["database_name"] == "✅ Set"


def test_health_reports_missing_settings(client):
    body = client.get("/test").json()
    assert body["database_url"] == "❌ Not Set"
    assert body["database_name"] == "❌ Not Set"
