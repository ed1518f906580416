"""Pytest fixtures for testing"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ["DEV_LOGIN_ENABLED"] = "true"

import pytest
from typing import Callable, Generator
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from finflow.api.main import create_app
from finflow.infrastructure.database.models import Base, User
from finflow.infrastructure.database.repositories import UserRepository
from finflow.infrastructure.database.session import create_db_engine, get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_db_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def app(db: Session) -> FastAPI:
    """FastAPI app wired to the test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Unauthenticated test client"""
    return TestClient(app)


@pytest.fixture
def login(app: FastAPI) -> Callable[..., TestClient]:
    """Factory for clients signed in through the development login"""

    def _login(user_id: str = "user_1", **claims) -> TestClient:
        signed_in = TestClient(app)
        response = signed_in.post(
            "/api/auth/dev-login",
            json={"id": user_id, "email": f"{user_id}@example.com", **claims},
        )
        assert response.status_code == 200
        return signed_in

    return _login


@pytest.fixture
def auth_client(login) -> TestClient:
    """Client signed in as user_1"""
    return login("user_1", firstName="Asha", companyName="Asha Traders")


@pytest.fixture
def user(db: Session) -> User:
    """Persisted owner for repository-level tests"""
    user = UserRepository(db).upsert("owner_a", {"email": "a@example.com", "company_name": "A Traders"})
    db.commit()
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    user = UserRepository(db).upsert("owner_b", {"email": "b@example.com"})
    db.commit()
    return user
