import os

# must be set before equalify.db creates its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from equalify.auth import create_access_token
from equalify.db import engine, init_db
from equalify.main import app
from equalify.models.user import User


@pytest.fixture(autouse=True)
def db():
    init_db()
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_user():
    def _make(name, email=None):
        user = User(name=name, email=email or f"{name.lower()}@example.com")
        with Session(engine) as s:
            s.add(user)
            s.commit()
            s.refresh(user)
        return user
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


@pytest.fixture
def carol(make_user):
    return make_user("Carol")


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers
