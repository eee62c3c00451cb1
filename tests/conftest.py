"""
Pytest configuration and shared fixtures for the stock management API tests.
"""
import os

# Keep the import-time engine away from the on-disk development database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app


@pytest.fixture(scope='function')
def engine():
    """Fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Direct store access for arranging and checking state."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """A test client whose requests use the in-memory database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def create_product(client):
    """Add a product through the API and return its JSON."""
    def _create(**overrides):
        payload = {
            "name": "Brake pads front",
            "description": "Ceramic front brake pad set",
            "reference": "BRK-PAD-F01",
            "category": "Brakes",
            "buying_price": 24.9,
            "quantity": 5,
        }
        payload.update(overrides)
        response = client.post("/products", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _create
