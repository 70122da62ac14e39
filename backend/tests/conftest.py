import os
import tempfile
from pathlib import Path

# Point the app at a throwaway database before anything imports it.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="community_hub_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["ENV"] = "dev"
os.environ["JWT_SECRET"] = "community-hub-test-secret-0123456789abcdef"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ.pop("JWT_ISSUER", None)

import jwt
import pytest
from sqlmodel import SQLModel, Session

from community_hub.database import engine
from community_hub import models

TEST_SECRET = os.environ["JWT_SECRET"]


def make_token(clerk_id, **claims):
    payload = {"sub": clerk_id, **claims}
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def bearer(clerk_id, **claims):
    return {"Authorization": f"Bearer {make_token(clerk_id, **claims)}"}


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test empty tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def admin_headers():
    """Headers for an admin profile inserted straight into the database."""
    with Session(engine) as session:
        session.add(models.User(
            clerk_id="user_admin",
            user_first_name="Ada",
            user_last_name="Admin",
            user_email="ada@example.com",
            user_type="admin",
        ))
        session.commit()
    return bearer("user_admin")


@pytest.fixture
def member():
    """Create a regular profile through the API; returns (json, headers)."""
    from fastapi.testclient import TestClient
    from community_hub.main import app

    headers = bearer("user_member")
    r = TestClient(app).post("/api/users", json={
        "clerkId": "user_member",
        "userFirstName": "Mia",
        "userLastName": "Member",
        "userEmail": "mia@example.com",
    }, headers=headers)
    assert r.status_code == 201
    return r.json(), headers


@pytest.fixture
def auth():
    """Build Authorization headers for an arbitrary Clerk id."""
    return bearer
