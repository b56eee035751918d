"""
tests/test_api_routes.py -- Integration tests for the auth and user routes.

These tests exercise the full stack: FastAPI routing -> auth dependency
injection -> UserDirectory/AuthenticationFlow -> UserStore -> response model
serialization and the domain-error exception handler.

Coverage:
  - Auth failures: 401 on protected user routes without a token
  - Login: valid 200 with token, wrong password and unknown email both 401 bad_credentials
  - Users: register 201, duplicate 409, invalid document 400, list/paginate,
    get 404, update, delete returns snapshot
  - Password hashes never appear in any response body

Fixtures used (from conftest.py):
  - api_client: (client, token, uid) -- TestClient with a Bearer token for
    owner@example.com / ownerpass123.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.helpers import VALID_CNPJ, VALID_CPF, VALID_CPF_2, VALID_CPF_3


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestApiAuthFailure:
    """Unauthenticated requests to protected routes must return 401."""

    def test_list_users_unauthenticated(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/users")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_get_user_unauthenticated(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, uid = api_client
        assert client.get(f"/api/v1/users/{uid}").status_code == 401

    def test_me_with_garbage_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/v1/auth/me", headers=_auth("not.a.token"))
        assert resp.status_code == 401


class TestApiLogin:
    def test_login_valid_credentials(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "ownerpass123"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["token"]
        assert data["token_type"] == "bearer"
        assert resp.headers["Cache-Control"] == "no-store"

    def test_login_failures_look_identical(self, api_client: tuple[TestClient, str, str]) -> None:
        """Wrong password and unknown email return the same status and body."""
        client, _token, _uid = api_client
        wrong_password = client.post(
            "/api/v1/auth/login", json={"email": "owner@example.com", "password": "wrongpassword"}
        )
        unknown_email = client.post(
            "/api/v1/auth/login", json={"email": "ghost@example.com", "password": "ownerpass123"}
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["error"]["code"] == "bad_credentials"

    def test_me_authenticated(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, uid = api_client
        resp = client.get("/api/v1/auth/me", headers=_auth(token))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["id"] == uid
        assert data["email"] == "owner@example.com"
        assert "password" not in data


class TestApiUsers:
    def test_register_user(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        body = {"name": "Ana", "document": "529.982.247-25", "email": "ana@example.com", "password": "123456"}
        resp = client.post("/api/v1/users", json=body)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["document"] == VALID_CPF
        assert data["id"]
        assert data["created_at"]
        assert "password" not in data

        login = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "123456"})
        assert login.status_code == 200

    def test_register_duplicate_document(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        body = {"name": "Clone", "document": VALID_CNPJ, "email": "clone@example.com", "password": "123456"}
        resp = client.post("/api/v1/users", json=body)
        assert resp.status_code == 409
        error = resp.json()["error"]
        assert error["code"] == "conflict"
        assert error["detail"] == "document"

    def test_register_duplicate_email(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        body = {"name": "Clone", "document": VALID_CPF_2, "email": "owner@example.com", "password": "123456"}
        resp = client.post("/api/v1/users", json=body)
        assert resp.status_code == 409
        assert resp.json()["error"]["detail"] == "email"

    def test_register_invalid_document(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        body = {"name": "Bad", "document": "00000000000", "email": "bad@example.com", "password": "123456"}
        resp = client.post("/api/v1/users", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_format"

    def test_register_validation_error(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/v1/users", json={"name": "No Email", "document": VALID_CPF_3, "password": "123456"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_register_multibyte_password_over_byte_limit(self, api_client: tuple[TestClient, str, str]) -> None:
        """64 characters are allowed, but bcrypt counts bytes: "é" * 40 is 80 of them."""
        client, token, _uid = api_client
        body = {"name": "Eve", "document": VALID_CPF_3, "email": "eve@example.com", "password": "é" * 40}
        resp = client.post("/api/v1/users", json=body)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"
        listed = client.get("/api/v1/users", params={"email": "eve@example.com"}, headers=_auth(token))
        assert listed.json()["users"] == []

    def test_login_and_update_reject_oversized_password(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, uid = api_client
        login = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "é" * 40})
        assert login.status_code == 422
        update = client.put(f"/api/v1/users/{uid}", json={"password": "é" * 40}, headers=_auth(token))
        assert update.status_code == 422

    def test_list_users(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/users", headers=_auth(token))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total"] == len(data["users"]) >= 1
        assert data["page"] is None
        assert all("password" not in u for u in data["users"])

    def test_list_users_paginated(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/users", params={"page": 1, "limit": 1}, headers=_auth(token))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert len(data["users"]) == 1
        assert data["total"] >= 1
        assert data["page"] == 1
        assert data["limit"] == 1

    def test_list_users_filtered_by_document(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, uid = api_client
        resp = client.get("/api/v1/users", params={"document": "11.222.333/0001-81"}, headers=_auth(token))
        assert resp.status_code == 200
        assert [u["id"] for u in resp.json()["users"]] == [uid]

    def test_invalid_page_rejected(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/users", params={"page": 0, "limit": 10}, headers=_auth(token))
        assert resp.status_code == 422

    def test_get_unknown_user(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        resp = client.get("/api/v1/users/does-not-exist", headers=_auth(token))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_update_and_delete_user(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        created = client.post(
            "/api/v1/users",
            json={"name": "Bia", "document": VALID_CPF_3, "email": "bia@example.com", "password": "123456"},
        ).json()

        updated = client.put(
            f"/api/v1/users/{created['id']}", json={"name": "Beatriz"}, headers=_auth(token)
        )
        assert updated.status_code == 200, updated.text
        assert updated.json()["name"] == "Beatriz"
        assert updated.json()["email"] == "bia@example.com"

        deleted = client.delete(f"/api/v1/users/{created['id']}", headers=_auth(token))
        assert deleted.status_code == 200
        assert deleted.json()["name"] == "Beatriz"

        assert client.get(f"/api/v1/users/{created['id']}", headers=_auth(token)).status_code == 404
        assert client.delete(f"/api/v1/users/{created['id']}", headers=_auth(token)).status_code == 404

    def test_update_unknown_user(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        resp = client.put("/api/v1/users/does-not-exist", json={"name": "x"}, headers=_auth(token))
        assert resp.status_code == 404

    def test_update_to_another_users_email(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, _uid = api_client
        created = client.post(
            "/api/v1/users",
            json={"name": "Caio", "document": VALID_CPF_2, "email": "caio@example.com", "password": "123456"},
        ).json()
        resp = client.put(
            f"/api/v1/users/{created['id']}", json={"email": "owner@example.com"}, headers=_auth(token)
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["detail"] == "email"
