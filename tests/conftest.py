"""Shared fixtures: an isolated database per test and logged-in users."""
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="social_chat_tests_")
os.environ.setdefault("SOCIAL_CHAT_DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'import.db')}")
os.environ.setdefault("SOCIAL_CHAT_LOG_FILE", os.path.join(_TMP, "server.log"))
os.environ.setdefault("SOCIAL_CHAT_CLIENT_STATE", os.path.join(_TMP, "client.json"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from social_chat.server.auth import TOKEN_STORE
from social_chat.server.database import Base, get_db
from social_chat.server.main import app

PASSWORD = "correct-horse-battery"


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    TOKEN_STORE.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    TOKEN_STORE.clear()


def register_and_login(client, login, name, image=None):
    payload = {"login": login, "password": PASSWORD, "name": name}
    if image:
        payload["image"] = image
    resp = client.post("/auth/register", json=payload)
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"login": login, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture()
def alice(client):
    return register_and_login(client, "alice", "Alice", "https://example.com/alice.png")


@pytest.fixture()
def bob(client):
    return register_and_login(client, "bob", "Bob")


@pytest.fixture()
def carol(client):
    return register_and_login(client, "carol", "Carol")


def make_friends(client, first, second):
    (first_user, first_headers), (second_user, second_headers) = first, second
    resp = client.post("/friends/requests", json={"target_user_id": second_user["id"]}, headers=first_headers)
    assert resp.status_code == 201, resp.text
    resp = client.post(f"/friends/requests/{resp.json()['id']}/accept", headers=second_headers)
    assert resp.status_code == 200, resp.text
    return resp.json()
