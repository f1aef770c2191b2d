"""
test_auth.py - Auth Routes

- signup/login response shapes
- error bodies carry {"code", "message"}
- protected routes accept raw or Bearer tokens
"""

import pytest
from jose import jwt

from sonia.core import store as store_module


def signup(client, email="asha@example.com", password="s3cret!", name="Asha"):
    return client.post(
        "/api/auth/signup", json={"name": name, "email": email, "password": password}
    )


class TestSignup:
    def test_success(self, client):
        response = signup(client)

        assert response.status_code == 200
        assert response.json() == {"msg": "Signup successful"}

    def test_missing_fields(self, client):
        response = client.post("/api/auth/signup", json={"email": "asha@example.com"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "MISSING_FIELDS"

    def test_duplicate(self, client):
        signup(client)

        response = signup(client, name="Other")

        assert response.status_code == 400
        assert response.json()["detail"] == {
            "code": "USER_EXISTS",
            "message": "User already exists",
        }

    def test_retry_after_failed_profile_write(self, client, monkeypatch):
        real_write = store_module.atomic_write_json
        failures = [OSError("disk full")]

        def flaky_write(path, data):
            if failures:
                raise failures.pop()
            real_write(path, data)

        monkeypatch.setattr(store_module, "atomic_write_json", flaky_write)

        with pytest.raises(OSError):
            signup(client)

        assert signup(client).status_code == 200
        login = client.post(
            "/api/auth/login", json={"email": "asha@example.com", "password": "s3cret!"}
        )
        assert login.status_code == 200


class TestLogin:
    def test_success(self, client):
        signup(client)

        response = client.post(
            "/api/auth/login", json={"email": "asha@example.com", "password": "s3cret!"}
        )

        body = response.json()
        assert response.status_code == 200
        assert set(body) == {"token", "userId", "email", "name"}
        assert jwt.decode(body["token"], "test-secret", algorithms=["HS256"])["id"] == body["userId"]

    def test_missing_credentials(self, client):
        response = client.post("/api/auth/login", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "MISSING_CREDENTIALS"

    def test_unknown_user(self, client):
        response = client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "x"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "USER_NOT_FOUND"

    def test_wrong_password(self, client):
        signup(client)

        response = client.post(
            "/api/auth/login", json={"email": "asha@example.com", "password": "nope"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "WRONG_PASSWORD"


class TestMe:
    def test_raw_token(self, client, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["email"] == "asha@example.com"
        assert body["name"] == "Asha"
        assert "password_hash" not in body

    def test_bearer_token(self, client, token):
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200

    def test_no_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "NO_TOKEN"

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "garbage"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"

    def test_token_for_unknown_user(self, client):
        token = jwt.encode({"id": "USR-000000000000"}, "test-secret", algorithm="HS256")

        response = client.get("/api/auth/me", headers={"Authorization": token})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
