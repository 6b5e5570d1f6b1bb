# tests/conftest.py
import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from jose import jwt

from whalemall.config import Settings
from whalemall.crud import ListingStore
from whalemall.db import init_db, make_engine, make_session_factory
from whalemall.main import create_app
from whalemall.schemas import ListingCreate
from whalemall.security import ContactCipher

TEST_SETTINGS = Settings(
    database_url="sqlite://",
    encryption_key="test-encryption-key",
    jwt_secret_key="test-jwt-secret",
    seed_sample_data=False,
)


@pytest.fixture
def db():
    engine = make_engine(TEST_SETTINGS)
    init_db(engine)
    session = make_session_factory(engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def cipher():
    return ContactCipher(TEST_SETTINGS.encryption_key)


@pytest.fixture
def store(db, cipher):
    return ListingStore(db, cipher)


@pytest.fixture
def make_listing(store):
    """Create a listing through the store and return its id."""
    def _make(seller_id="seller-1", **overrides):
        data = {
            "title": "Used bicycle",
            "description": "Blue frame, new tyres",
            "price": Decimal("120.00"),
            "category": "other",
            "contact_info": "WeChat: bike_seller",
            "image_urls": ["https://img.example/bike-1.jpg", "https://img.example/bike-2.jpg"],
        }
        data.update(overrides)
        return store.create(seller_id, ListingCreate(**data))
    return _make


def make_token(user_id: str, role: str = "user") -> str:
    return jwt.encode({"sub": user_id, "role": role}, TEST_SETTINGS.jwt_secret_key, algorithm="HS256")


def auth(user_id: str, role: str = "user") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def client():
    app = create_app(TEST_SETTINGS)
    with TestClient(app) as c:
        yield c
