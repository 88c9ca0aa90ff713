"""Tests for authentication: password hashing, tokens, session routes."""

from datetime import datetime, timedelta, timezone

from stockroom.core import security
from stockroom.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    revoke_token,
    verify_password,
)
from stockroom.models.user import User


# ============== Password hashing ==============

class TestPasswordHashing:
    def test_hash_and_verify(self):
        h = get_password_hash("secret123")
        assert verify_password("secret123", h)

    def test_wrong_password_rejected(self):
        h = get_password_hash("secret123")
        assert not verify_password("wrong", h)

    def test_hash_is_unique(self):
        assert get_password_hash("same") != get_password_hash("same")  # different salts

    def test_invalid_hash_returns_false(self):
        assert not verify_password("test", "not-a-hash")


# ============== JWT tokens ==============

class TestJWTTokens:
    def test_create_and_decode(self):
        token = create_access_token(data={"sub": "42", "username": "alice"})
        payload = decode_access_token(token)
        assert payload is not None
        assert payload["sub"] == "42"
        assert payload["username"] == "alice"
        assert "exp" in payload and "iat" in payload and "jti" in payload

    def test_expired_token_rejected(self):
        token = create_access_token(data={"sub": "1"}, expires_delta=timedelta(seconds=-10))
        assert decode_access_token(token) is None

    def test_garbage_token_rejected(self):
        assert decode_access_token("not.a.token") is None

    def test_revoked_token_rejected(self):
        token = create_access_token(data={"sub": "1"})
        assert revoke_token(token)
        assert decode_access_token(token) is None

    def test_revoking_forgets_expired_entries(self):
        security._revoked_tokens["stale-jti"] = datetime.now(timezone.utc) - timedelta(minutes=1)
        token = create_access_token(data={"sub": "1"})
        assert revoke_token(token)
        assert "stale-jti" not in security._revoked_tokens
        assert decode_access_token(token) is None


# ============== Routes ==============

class TestAuthRoutes:
    def test_register_sets_cookie(self, client, db_session):
        response = client.post("/auth/register", json={"username": "newbie", "password": "secret1"})
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["username"] == "newbie"
        assert data["accessToken"]
        assert "access_token" in response.cookies
        assert db_session.query(User).filter(User.username == "newbie").count() == 1

    def test_register_duplicate_username(self, client, test_user):
        response = client.post("/auth/register", json={"username": "tester", "password": "another1"})
        assert response.status_code == 400

    def test_register_short_password(self, client):
        response = client.post("/auth/register", json={"username": "shorty", "password": "123"})
        assert response.status_code == 400
        assert response.json()["errorKind"] == "validation"

    def test_login_success(self, client, test_user):
        response = client.post("/auth/login", json={"username": "tester", "password": "testpass123"})
        assert response.status_code == 200
        assert response.json()["tokenType"] == "bearer"
        assert "access_token" in response.cookies

    def test_login_wrong_password(self, client, test_user):
        response = client.post("/auth/login", json={"username": "tester", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["errorKind"] == "unauthorized"

    def test_login_inactive_user(self, client, db_session, test_user):
        test_user.is_active = False
        db_session.commit()
        response = client.post("/auth/login", json={"username": "tester", "password": "testpass123"})
        assert response.status_code == 401

    def test_me_with_bearer(self, client, auth_headers):
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["username"] == "tester"

    def test_me_with_cookie(self, client, test_user):
        client.post("/auth/login", json={"username": "tester", "password": "testpass123"})
        response = client.get("/auth/me")
        assert response.status_code == 200

    def test_invalid_bearer_falls_back_to_cookie(self, client, auth_token):
        headers = {"Authorization": "Bearer not.a.token", "Cookie": f"access_token={auth_token}"}
        response = client.get("/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["username"] == "tester"

    def test_me_without_token(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated", "errorKind": "unauthorized"}

    def test_logout_revokes_token(self, client, auth_headers):
        assert client.post("/auth/logout", headers=auth_headers).status_code == 200
        assert client.get("/auth/me", headers=auth_headers).status_code == 401

    def test_disabled_user_token_rejected(self, client, db_session, test_user, auth_headers):
        test_user.is_active = False
        db_session.commit()
        assert client.get("/auth/me", headers=auth_headers).status_code == 401


class TestProtectedRoutes:
    def test_routes_require_token(self, client):
        for path in ["/suppliers", "/products", "/reports/low-stock", "/invoices"]:
            response = client.get(path)
            assert response.status_code == 401, path

    def test_upload_requires_token(self, client):
        response = client.post("/invoices/upload", data={"supplierId": "1"})
        assert response.status_code == 401
