"""
Integration tests for user management and account moderation.
"""
import pytest
from httpx import AsyncClient


@pytest.mark.integration
@pytest.mark.asyncio
class TestUserEndpoints:

    async def test_admin_lists_users(self, client: AsyncClient, admin_token, attendee, organizer):
        response = await client.get("/api/v1/users", headers={"Authorization": f"Bearer {admin_token}"})
        assert response.status_code == 200
        assert {u["email"] for u in response.json()} == {"ada@example.com", attendee.email, organizer.email}

    async def test_attendee_cannot_list_users(self, client: AsyncClient, attendee_token):
        response = await client.get("/api/v1/users", headers={"Authorization": f"Bearer {attendee_token}"})
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Admin privileges required."

    async def test_read_own_profile(self, client: AsyncClient, attendee, attendee_token):
        response = await client.get(f"/api/v1/users/{attendee.id}", headers={"Authorization": f"Bearer {attendee_token}"})
        assert response.status_code == 200
        assert response.json()["name"] == attendee.name

    async def test_cannot_read_other_profile(self, client: AsyncClient, organizer, attendee_token):
        response = await client.get(f"/api/v1/users/{organizer.id}", headers={"Authorization": f"Bearer {attendee_token}"})
        assert response.status_code == 403

    async def test_update_own_profile(self, client: AsyncClient, attendee, attendee_token):
        response = await client.put(
            f"/api/v1/users/{attendee.id}",
            headers={"Authorization": f"Bearer {attendee_token}"},
            json={"name": "Amina W.", "password": "Changed123!"},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Amina W."

        login = await client.post("/api/v1/auth/login", json={"email": attendee.email, "password": "Changed123!"})
        assert login.status_code == 200

    async def test_update_to_taken_email(self, client: AsyncClient, attendee, attendee_token, organizer):
        response = await client.put(
            f"/api/v1/users/{attendee.id}",
            headers={"Authorization": f"Bearer {attendee_token}"},
            json={"email": organizer.email},
        )
        assert response.status_code == 409

    async def test_block_takes_effect_on_next_request(self, client: AsyncClient, attendee, attendee_token, admin_token):
        assert (await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {attendee_token}"})).status_code == 200

        blocked = await client.put(
            f"/api/v1/users/{attendee.id}/status",
            headers={"Authorization": f"Bearer {admin_token}"},
            json={"is_blocked": True},
        )
        assert blocked.status_code == 200
        assert blocked.json()["user"]["is_blocked"] is True

        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {attendee_token}"})
        assert response.status_code == 403
        assert response.json()["error"] == "account_blocked"

        await client.put(
            f"/api/v1/users/{attendee.id}/status",
            headers={"Authorization": f"Bearer {admin_token}"},
            json={"is_blocked": False},
        )
        assert (await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {attendee_token}"})).status_code == 200

    async def test_status_must_be_boolean(self, client: AsyncClient, attendee, admin_token):
        response = await client.put(
            f"/api/v1/users/{attendee.id}/status",
            headers={"Authorization": f"Bearer {admin_token}"},
            json={"is_blocked": "yes"},
        )
        assert response.status_code == 400

    async def test_admin_cannot_block_self(self, client: AsyncClient, admin, admin_token):
        response = await client.put(
            f"/api/v1/users/{admin.id}/status",
            headers={"Authorization": f"Bearer {admin_token}"},
            json={"is_blocked": True},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "You cannot block yourself"

    async def test_admin_cannot_delete_self(self, client: AsyncClient, admin, admin_token):
        response = await client.delete(f"/api/v1/users/{admin.id}", headers={"Authorization": f"Bearer {admin_token}"})
        assert response.status_code == 400
        assert response.json()["message"] == "You cannot delete yourself"

    async def test_delete_user(self, client: AsyncClient, attendee, attendee_token, admin_token, small_event, make_registration):
        await make_registration(small_event, attendee)
        attendee_id = attendee.id

        response = await client.delete(f"/api/v1/users/{attendee_id}", headers={"Authorization": f"Bearer {admin_token}"})
        assert response.status_code == 200

        detail = (await client.get(f"/api/v1/events/{small_event.id}")).json()
        assert detail["registered_count"] == 0

        gone = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {attendee_token}"})
        assert gone.status_code == 401
        assert gone.json()["error"] == "account_not_found"

    async def test_delete_organizer_with_events(self, client: AsyncClient, organizer, admin_token, event):
        response = await client.delete(f"/api/v1/users/{organizer.id}", headers={"Authorization": f"Bearer {admin_token}"})
        assert response.status_code == 409

    async def test_non_admin_cannot_delete(self, client: AsyncClient, other_attendee, attendee_token):
        response = await client.delete(f"/api/v1/users/{other_attendee.id}", headers={"Authorization": f"Bearer {attendee_token}"})
        assert response.status_code == 403
