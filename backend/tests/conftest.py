"""
Shared fixtures: in-memory SQLite, a TestClient without the scheduler, and users with bearer tokens.

Environment is set before foodshare is imported so settings and the engine pick it up.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from foodshare.core.security import create_access_token
from foodshare.core.timeutil import utcnow
from foodshare.db.base import Base
from foodshare.db.session import SessionLocal, engine
from foodshare.main import app
from foodshare.models.user import User


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # Not used as a context manager, so the lifespan (scheduler) never starts
    return TestClient(app)


def _make_user(name: str, email: str) -> int:
    session = SessionLocal()
    try:
        user = User(name=name, email=email)
        session.add(user)
        session.commit()
        return user.id
    finally:
        session.close()


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def alice():
    """Post owner in most scenarios."""
    user_id = _make_user("Alice", "alice@example.com")
    return {"id": user_id, "headers": auth_headers(user_id)}


@pytest.fixture
def bob():
    """Claimer in most scenarios."""
    user_id = _make_user("Bob", "bob@example.com")
    return {"id": user_id, "headers": auth_headers(user_id)}


@pytest.fixture
def carol():
    """Bystander: neither owner nor claimer."""
    user_id = _make_user("Carol", "carol@example.com")
    return {"id": user_id, "headers": auth_headers(user_id)}


def post_body(**overrides) -> dict:
    body = {
        "type": "Donate",
        "title": "Fresh bread",
        "description": "Two loaves of sourdough from this morning",
        "quantity": "2 loaves",
        "location": {"address": "12 Baker St", "coordinates": [77.5946, 12.9716]},
        "expiryDate": (utcnow() + timedelta(days=2)).isoformat(),
        "images": [],
    }
    body.update(overrides)
    return body


@pytest.fixture
def body():
    """Factory for a valid create-post body."""
    return post_body


@pytest.fixture
def make_post(client):
    """Create a post through the API as the given user; returns the post JSON."""

    def _make(user: dict, **overrides) -> dict:
        res = client.post("/api/posts", json=post_body(**overrides), headers=user["headers"])
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return _make


@pytest.fixture
def set_status(client):
    def _set(post_id: int, user: dict, status: str):
        return client.put(f"/api/posts/{post_id}/status", json={"status": status}, headers=user["headers"])

    return _set


@pytest.fixture
def completed_post(client, make_post, set_status, alice, bob):
    """Donate post by alice, claimed, picked up and completed with bob."""
    post = make_post(alice)
    assert client.put(f"/api/posts/{post['id']}/claim", headers=bob["headers"]).status_code == 200
    assert set_status(post["id"], bob, "Picked Up").status_code == 200
    assert set_status(post["id"], alice, "Completed").status_code == 200
    return post
