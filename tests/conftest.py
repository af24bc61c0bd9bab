import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import Claims, create_token, hash_password
from config import Settings, get_settings
from database import PRODUCTS, USERS, create_document, ensure_indexes, get_db
from main import app
from schemas import Measure, Product, User

PASSWORD = "s3cret-pass"


@pytest.fixture
def settings():
    return Settings(
        database_url=None,
        database_name=None,
        jwt_secret="test-secret",
        jwt_alg="HS256",
        jwt_expire_minutes=60,
        enable_seed=True,
        admin_email="admin@example.com",
        admin_password="admin-pass",
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient(tz_aware=True)["water_delivery_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db, settings):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(user_id="1", email=None, is_active=True, role="customer", **extra):
        user = User(
            user_id=user_id,
            full_name=extra.pop("full_name", f"User {user_id}"),
            email=email or f"user{user_id}@example.com",
            password_hash=hash_password(PASSWORD),
            phone_number=extra.pop("phone_number", "+90 555 111 22 33"),
            address=extra.pop("address", f"{user_id} Spring Street"),
            latitude=extra.pop("latitude", 39.75),
            longitude=extra.pop("longitude", 30.49),
            is_active=is_active,
            role=role,
        )
        return create_document(db, USERS, user)
    return _make_user


@pytest.fixture
def add_product(db):
    def _add_product(product_id="SU_0", price=100, stock=5, weight=19, **extra):
        product = Product(
            product_id=product_id,
            name=extra.pop("name", "Spring Water 19L"),
            price=price,
            stock=stock,
            weight=Measure(value=weight, unit="kg"),
            **extra,
        )
        return create_document(db, PRODUCTS, product)
    return _add_product


@pytest.fixture
def headers_for(settings):
    def _headers_for(user):
        return {"Authorization": f"Bearer {create_token(user, settings)}"}
    return _headers_for


@pytest.fixture
def claims_for():
    def _claims_for(user):
        return Claims(user_id=user["user_id"], email=user["email"], role=user["role"])
    return _claims_for
