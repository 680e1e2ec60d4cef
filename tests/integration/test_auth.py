"""
Integration tests for authentication endpoints.
Covers sign-up, login, refresh, logout and the password reset flow.
"""
import pytest
from httpx import AsyncClient

from app.core.rate_limit import limiter
from app.core.security import create_refresh_token


@pytest.mark.integration
@pytest.mark.asyncio
class TestAuthEndpoints:
    """Test authentication API endpoints."""

    async def test_register_success(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "New User", "email": "NewUser@example.com", "password": "Test123!@#"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["role"] == "attendee"
        assert data["access_token"] and data["refresh_token"]
        assert "hashed_password" not in data["user"]

    async def test_register_as_organizer(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Org", "email": "org@example.com", "password": "Test123!@#", "role": "organizer"},
        )
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "organizer"

    async def test_register_cannot_claim_admin(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Sneaky", "email": "sneaky@example.com", "password": "Test123!@#", "role": "admin"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    async def test_register_weak_password(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Test User", "email": "user@example.com", "password": "weak"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert "password" in body["message"].lower()

    async def test_register_duplicate_email(self, client: AsyncClient, attendee):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Duplicate", "email": attendee.email, "password": "Test123!@#"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert "already registered" in response.json()["message"].lower()

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Test User", "email": "not-an-email", "password": "Test123!@#"},
        )
        assert response.status_code == 400

    async def test_login_success(self, client: AsyncClient, attendee):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": attendee.email, "password": "Test123!@#"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["id"] == str(attendee.id)

    async def test_login_wrong_password(self, client: AsyncClient, attendee):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": attendee.email, "password": "Wrong123!@#"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "Test123!@#"},
        )
        assert response.status_code == 401

    async def test_login_blocked_account(self, client: AsyncClient, db_session, attendee):
        attendee.is_blocked = True
        await db_session.commit()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": attendee.email, "password": "Test123!@#"},
        )
        assert response.status_code == 403
        assert response.json()["error"] == "account_blocked"

    async def test_me(self, client: AsyncClient, attendee, attendee_token):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {attendee_token}"})
        assert response.status_code == 200
        assert response.json()["email"] == attendee.email

    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "unauthenticated",
            "message": "Access denied. No token provided.",
        }

    async def test_refresh(self, client: AsyncClient, attendee):
        refresh_token = create_refresh_token({"sub": str(attendee.id), "role": "attendee"})
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == 200
        access_token = response.json()["access_token"]
        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access_token}"})
        assert me.status_code == 200

    async def test_refresh_rejects_access_token(self, client: AsyncClient, attendee_token):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": attendee_token})
        assert response.status_code == 401

    async def test_refresh_for_blocked_account(self, client: AsyncClient, db_session, attendee):
        refresh_token = create_refresh_token({"sub": str(attendee.id)})
        attendee.is_blocked = True
        await db_session.commit()

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert response.status_code == 403

    async def test_logout_revokes_token(self, client: AsyncClient, attendee_token):
        headers = {"Authorization": f"Bearer {attendee_token}"}
        response = await client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 204

        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Token has been revoked"


@pytest.mark.integration
@pytest.mark.asyncio
class TestPasswordReset:

    async def test_unknown_email_gets_the_same_answer(self, client: AsyncClient, attendee, published):
        known = await client.post("/api/v1/auth/forgot-password", json={"email": attendee.email})
        unknown = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert "token" not in known.json()
        assert [key for key, _ in published] == ["password_reset.requested"]

    async def test_reset_flow(self, client: AsyncClient, attendee, published):
        await client.post("/api/v1/auth/forgot-password", json={"email": attendee.email})
        token = published[-1][1]["token"]

        response = await client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "NewPass456$"},
        )
        assert response.status_code == 200

        old = await client.post("/api/v1/auth/login", json={"email": attendee.email, "password": "Test123!@#"})
        new = await client.post("/api/v1/auth/login", json={"email": attendee.email, "password": "NewPass456$"})
        assert old.status_code == 401
        assert new.status_code == 200

        reused = await client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "Another789%"},
        )
        assert reused.status_code == 400

    async def test_reset_with_bad_token(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/reset-password",
            json={"token": "deadbeef", "password": "NewPass456$"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    async def test_reset_with_weak_password(self, client: AsyncClient, attendee, published):
        await client.post("/api/v1/auth/forgot-password", json={"email": attendee.email})
        token = published[-1][1]["token"]

        response = await client.post("/api/v1/auth/reset-password", json={"token": token, "password": "short"})
        assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.asyncio
class TestRateLimiting:

    @pytest.fixture
    def rate_limits_on(self, monkeypatch):
        monkeypatch.setattr(limiter, "enabled", True)
        limiter.reset()
        yield
        limiter.reset()

    async def test_limit_exceeded_uses_error_envelope(self, client: AsyncClient, rate_limits_on, published):
        for _ in range(3):
            allowed = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
            assert allowed.status_code == 200

        response = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})

        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "rate_limited"
        assert "3 per 1 minute" in body["message"]
