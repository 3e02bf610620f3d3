"""Pytest fixtures for shoestore tests."""

import mongomock
import pytest
from fastapi.testclient import TestClient

from shoestore.core.config import Settings
from shoestore.database.connection import close_database, ensure_indexes, init_database
from shoestore.database.products import product_db
from shoestore.database.users import user_db
from shoestore.security.passwords import hash_password
from shoestore.security.tokens import token_issuer

DEFAULT_PASSWORD = "password123"

DEFAULT_ADDRESS = {
    "street": "12 Mall Road",
    "city": "Lahore",
    "province": "Punjab",
    "postal_code": "54000",
    "country": "Pakistan",
}


@pytest.fixture
def db():
    """Bind every store to a fresh in-memory MongoDB."""
    database = mongomock.MongoClient().get_database("shoestore_test")
    ensure_indexes(database)
    init_database(database)
    yield database
    close_database()


@pytest.fixture
def settings():
    """Settings independent of the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def make_product(db):
    """Create products with sensible defaults."""

    def _make(**overrides):
        fields = {
            "name": "Trail Runner",
            "description": "Lightweight running shoe",
            "price": 1000.0,
            "discount": 0,
            "brand": "Stride",
            "sizes": [8.0, 9.0, 10.0],
            "stock": 10,
            "gender": "unisex",
            "category": "sport",
            "season": "all",
        }
        fields.update(overrides)
        return product_db.create_product(fields)

    return _make


@pytest.fixture
def make_user(db):
    """Create accounts; pass ``with_profile=True`` for phone and address."""
    counter = {"n": 0}

    def _make(role="user", with_profile=False, email=None, name="Test User"):
        counter["n"] += 1
        user = user_db.create_user(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(DEFAULT_PASSWORD, rounds=4),
            role=role,
        )
        if with_profile:
            user = user_db.update_user(
                user["_id"], {"phone": "03001234567", "address": dict(DEFAULT_ADDRESS)}
            )
        return user

    return _make


def auth_headers(user: dict) -> dict:
    token = token_issuer.issue_access_token(str(user["_id"]), user.get("role", "user"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db):
    """API client bound to the in-memory database."""
    from shoestore.main import app

    return TestClient(app)


@pytest.fixture
def customer(make_user):
    return make_user(with_profile=True)


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", name="Admin", email="admin@example.com")
