"""
Shared fixtures: a throwaway SQLite database, the FastAPI test client,
and factories for users and products.
"""
import os
import tempfile
from decimal import Decimal

_TMP = tempfile.mkdtemp(prefix="vibecart-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"

import pytest
from fastapi.testclient import TestClient

from main import app
from config.database import Base, SessionLocal, engine
from modules.auth.service import auth_service
from modules.catalog.models import Product


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(_schema):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(_schema):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name="Test User", role="user", password="secret123"):
        counter["n"] += 1
        email = f"user{counter['n']}@example.com"
        user, token = auth_service.signup(db, name, email, password)
        user.role = role
        db.commit()
        return user, token

    return _make


@pytest.fixture
def user_and_token(make_user):
    return make_user()


@pytest.fixture
def user(user_and_token):
    return user_and_token[0]


@pytest.fixture
def auth_headers(user_and_token):
    return {"Authorization": f"Bearer {user_and_token[1]}"}


@pytest.fixture
def make_product(db, user):
    def _make(name="Test Product", price="10.00", stock=5, category="Other", owner=None, **extra):
        product = Product(
            name=name,
            description=f"{name} description text",
            price=Decimal(price),
            category=category,
            stock=stock,
            owner_id=(owner or user).id,
            **extra,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make
