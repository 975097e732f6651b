"""Registration, login, lockout and token handling."""
from conftest import PASSWORD, register_and_login


class TestRegister:
    def test_register_returns_public_user(self, client):
        resp = client.post("/auth/register", json={"login": "dave", "password": PASSWORD, "name": "Dave"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["login"] == "dave"
        assert body["name"] == "Dave"
        assert body["image"] is None
        assert "password_hash" not in body

    def test_duplicate_login_rejected(self, client, alice):
        resp = client.post("/auth/register", json={"login": "alice", "password": PASSWORD, "name": "Other"})
        assert resp.status_code == 400

    def test_weak_password_rejected(self, client):
        resp = client.post("/auth/register", json={"login": "erin", "password": "123456789", "name": "Erin"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Password does not meet policy requirements"


class TestLogin:
    def test_bad_password_is_unauthorized(self, client, alice):
        resp = client.post("/auth/login", json={"login": "alice", "password": "wrong-password-1"})
        assert resp.status_code == 401

    def test_unknown_login_is_unauthorized(self, client):
        resp = client.post("/auth/login", json={"login": "nobody", "password": PASSWORD})
        assert resp.status_code == 401

    def test_account_locks_after_repeated_failures(self, client, alice):
        for _ in range(5):
            client.post("/auth/login", json={"login": "alice", "password": "wrong-password-1"})
        resp = client.post("/auth/login", json={"login": "alice", "password": PASSWORD})
        assert resp.status_code == 403


class TestTokens:
    def test_missing_token(self, client):
        assert client.get("/users/me").status_code == 401

    def test_unknown_token(self, client):
        resp = client.get("/users/me", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_me_returns_current_user(self, client, alice):
        user, headers = alice
        resp = client.get("/users/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == user["id"]

    def test_logout_revokes_token(self, client, alice):
        _, headers = alice
        assert client.post("/auth/logout", headers=headers).status_code == 200
        assert client.get("/users/me", headers=headers).status_code == 401


class TestUsers:
    def test_list_filters_by_name(self, client, alice, bob):
        _, headers = alice
        resp = client.get("/users", params={"name": "bo"}, headers=headers)
        assert [u["login"] for u in resp.json()] == ["bob"]

    def test_unknown_user_is_404(self, client, alice):
        _, headers = alice
        assert client.get("/users/9999", headers=headers).status_code == 404

    def test_second_login_gets_distinct_token(self, client, alice):
        _, first_headers = alice
        _, second_headers = register_and_login(client, "frank", "Frank")
        assert first_headers != second_headers
