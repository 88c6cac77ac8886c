"""
Pytest configuration and shared fixtures
"""

import os
import threading

# Must be set before config.get_settings() is first called
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SELLER_SIGNUP_KEY"] = "test-seller-key"
os.environ["BCRYPT_ROUNDS"] = "4"

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import SELLERS, USERS, ensure_indexes, get_db
from main import app
from security import issue_token

SELLER_KEY = "test-seller-key"


@pytest.fixture
def db():
    """Fresh in-memory marketplace database."""
    database = mongomock.MongoClient()["artcraft_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    """API client bound to the in-memory database."""
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_seller(db):
    def _make(name="Clay Studio", mail=None, products=None):
        seller_id = db[SELLERS].insert_one({
            "name": name,
            "mail": mail or f"{ObjectId()}@sellers.test",
            "phone": "555-0100",
            "password": "not-a-real-hash",
            "userType": "seller",
            "sellCount": 0,
            "products": products or [],
        }).inserted_id
        return seller_id
    return _make


@pytest.fixture
def make_user(db):
    def _make(name="Ada", mail=None):
        return db[USERS].insert_one({
            "name": name,
            "mail": mail or f"{ObjectId()}@buyers.test",
            "phone": "555-0199",
            "password": "not-a-real-hash",
            "userType": "user",
            "purchaseCount": 0,
        }).inserted_id
    return _make


@pytest.fixture
def auth_headers():
    def _headers(subject_id, role="seller"):
        return {"Authorization": f"Bearer {issue_token(str(subject_id), role)}"}
    return _headers


@pytest.fixture
def vase():
    return {
        "name": "Glazed Vase",
        "description": "Stoneware, hand thrown",
        "image": "https://img.test/vase.jpg",
        "price": 45.5,
        "category": "pottery",
    }


@pytest.fixture
def seller_writes(monkeypatch):
    """Record every update document sent to the seller collection."""
    recorded = []
    original = mongomock.collection.Collection.update_one

    def spy(self, filter, update, *args, **kwargs):
        if self.name == SELLERS:
            recorded.append(update)
        return original(self, filter, update, *args, **kwargs)

    monkeypatch.setattr(mongomock.collection.Collection, "update_one", spy)
    return recorded


@pytest.fixture
def seller_write_barrier(monkeypatch):
    """
    Hold every seller update until all workers have reached it.

    Any read a worker makes before writing therefore happens before any
    worker's write, so a read-modify-write would lose updates every time.
    """
    def _install(parties):
        barrier = threading.Barrier(parties, timeout=10)
        original = mongomock.collection.Collection.update_one

        def gated(self, filter, update, *args, **kwargs):
            if self.name == SELLERS:
                barrier.wait()
            return original(self, filter, update, *args, **kwargs)

        monkeypatch.setattr(mongomock.collection.Collection, "update_one", gated)
        return barrier
    return _install
