"""
Pytest fixtures for PesoPOS backend tests.

Provides an app on an in-memory database, a PosStore with a controllable
clock, a test client wired to that same store, and a few catalog entries.
"""

from datetime import datetime, timedelta

import pytest

from pesopos import create_app
from pesopos.extensions import db
from pesopos.services import catalog_service, user_service
from pesopos.services.pos_store import PosStore
from pesopos.services.storage_service import KeyValueStorage


class FakeClock:
    """Deterministic UTC-naive clock; advance() moves it forward."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cost factor 4 keeps hashing fast; verification is unaffected."""
    monkeypatch.setattr(user_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture()
def app():
    """Create application for testing."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "LOG_LEVEL": "WARNING",
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def clock():
    # 2026-10-17 06:30 UTC is 14:30 in Manila
    return FakeClock(datetime(2026, 10, 17, 6, 30, 0))


@pytest.fixture()
def store(app, clock):
    """A fresh PosStore; also the one the routes and CLI see."""
    store = PosStore(KeyValueStorage(prefix=app.config["STORAGE_KEY_PREFIX"]), clock=clock).load()
    app.extensions["pos_store"] = store
    return store


@pytest.fixture()
def client(app, store):
    """Create test client."""
    return app.test_client()


@pytest.fixture()
def cola(store):
    return catalog_service.add_product(store, {
        "name": "Coca-Cola",
        "category": "Beverages",
        "price": 100,
        "cost": 80,
        "stock": 50,
        "barcode": "4800000000017",
    })


@pytest.fixture()
def tshirt(store):
    return catalog_service.add_product(store, {
        "name": "T-Shirt",
        "category": "Others",
        "price": 250,
        "has_variants": True,
        "variants": [
            {"size": "S", "price": 250, "stock": 10, "barcode": "TS-S"},
            {"size": "M", "price": 260, "stock": 0, "barcode": "TS-M"},
        ],
    })


@pytest.fixture()
def cashier(store):
    return user_service.add_user(
        store, username="cashier", name="Juan Dela Cruz", role="cashier", password="Password123!"
    )

