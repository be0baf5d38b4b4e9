from unittest.mock import patch

from app.models.role import RoleNames
from app.models.user import User, UserStatus
from app.services import user_service
from app.utils.token import decode_access_token

REGISTRATION = {
    "full_name": "Lama Khalid",
    "email": "Lama@Learners.sa",
    "password": "password123",
    "confirm_password": "password123",
    "locale": "ar",
}


class TestRegistration:
    def test_register_then_verify(self, client, session, email_templates, sendgrid):
        response = client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending_email_verification"
        assert body["email"] == "lama@learners.sa"
        assert sendgrid.call_count == 1

        user = session.get(User, body["user_id"])
        token = user_service.create_verification_token(user)
        verified = client.post("/api/auth/verify-email", json={"token": token})

        assert verified.json()["status"] == "active"

    def test_duplicate_email(self, client):
        client.post("/api/auth/register", json=REGISTRATION)
        assert client.post("/api/auth/register", json=REGISTRATION).status_code == 400

    def test_password_mismatch(self, client):
        response = client.post("/api/auth/register", json={**REGISTRATION, "confirm_password": "different1"})
        assert response.status_code == 422

    def test_login_token_cannot_verify_email(self, client, session, user):
        response = client.post("/api/auth/login", json={"email": user.email, "password": "password123"})
        token = response.json()["access_token"]
        assert client.post("/api/auth/verify-email", json={"token": token}).status_code == 400


class TestLogin:
    def test_login_returns_roles(self, client, user):
        response = client.post("/api/auth/login", json={"email": user.email, "password": "password123"})

        assert response.status_code == 200
        body = response.json()
        assert body["roles"] == [RoleNames.PUBLIC_USER]
        claims = decode_access_token(body["access_token"])
        assert claims["user_id"] == user.id
        assert claims["roles"] == [RoleNames.PUBLIC_USER]

    def test_wrong_password(self, client, user):
        response = client.post("/api/auth/login", json={"email": user.email, "password": "wrong-password"})
        assert response.status_code == 401

    def test_suspended_user(self, client, session, user):
        user.status = UserStatus.suspended
        session.add(user)
        session.commit()

        response = client.post("/api/auth/login", json={"email": user.email, "password": "password123"})
        assert response.status_code == 403

    def test_admin_login_rejects_customers(self, client, user):
        response = client.post("/api/auth/admin-login", json={"email": user.email, "password": "password123"})
        assert response.status_code == 403

    def test_admin_login(self, client, admin):
        response = client.post("/api/auth/admin-login", json={"email": admin.email, "password": "password123"})
        assert response.status_code == 200
        assert RoleNames.ADMIN in response.json()["roles"]

    def test_me(self, client, auth_headers, user):
        body = client.get("/api/auth/me", headers=auth_headers).json()
        assert body["email"] == user.email
        assert body["is_admin"] is False

    def test_bad_token(self, client):
        assert client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"}).status_code == 401


class TestGoogleLogin:
    def test_creates_active_user(self, client, session):
        with patch("app.routes.auth.verify_google_token", return_value={"email": "new@learners.sa", "name": "New User"}):
            response = client.post("/api/auth/google", json={"token": "google-id-token"})

        assert response.status_code == 200
        user = user_service.get_user_by_email(session, "new@learners.sa")
        assert user.status == UserStatus.active
        assert user.password is None

    def test_invalid_google_token(self, client):
        with patch("app.routes.auth.verify_google_token", return_value=None):
            assert client.post("/api/auth/google", json={"token": "bad"}).status_code == 401


class TestAdminGuard:
    def test_customer_blocked_from_admin(self, client, auth_headers):
        assert client.get("/api/admin/dashboard-stats", headers=auth_headers).status_code == 403

    def test_admin_allowed(self, client, admin_headers):
        assert client.get("/api/admin/dashboard-stats", headers=admin_headers).status_code == 200
