"""
Tests for Announcements API endpoints.
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.models.announcement import Announcement, AnnouncementPriority


class TestAnnouncements:
    """Test announcement listing and admin management."""

    @pytest.mark.asyncio
    async def test_list_is_public(self, client: AsyncClient, test_announcement):
        response = await client.get("/api/announcements")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["results"] == 1
        announcement = body["data"]["announcements"][0]
        assert announcement["title"] == "General Assembly"
        assert announcement["priority"] == "high"
        assert announcement["createdBy"]["name"] == "Admin User"

    @pytest.mark.asyncio
    async def test_expired_hidden_by_default(
        self, client: AsyncClient, db_session: AsyncSession, admin_user, test_announcement
    ):
        db_session.add(Announcement(
            title="Old news",
            content="This has expired.",
            expires_at=datetime.now(timezone.utc) - timedelta(days=1),
            created_by_id=admin_user.id,
        ))
        await db_session.flush()

        response = await client.get("/api/announcements")
        assert [a["title"] for a in response.json()["data"]["announcements"]] == ["General Assembly"]

        response = await client.get("/api/announcements?includeExpired=true")
        assert response.json()["results"] == 2

    @pytest.mark.asyncio
    async def test_priority_filter(
        self, client: AsyncClient, db_session: AsyncSession, admin_user, test_announcement
    ):
        db_session.add(Announcement(
            title="Reminder",
            content="Dues are due.",
            priority=AnnouncementPriority.LOW,
            created_by_id=admin_user.id,
        ))
        await db_session.flush()

        response = await client.get("/api/announcements?priority=low")
        assert [a["title"] for a in response.json()["data"]["announcements"]] == ["Reminder"]

    @pytest.mark.asyncio
    async def test_get_announcement(self, client: AsyncClient, test_announcement):
        response = await client.get(f"/api/announcements/{test_announcement.id}")
        assert response.status_code == 200
        assert response.json()["data"]["announcement"]["id"] == test_announcement.id

    @pytest.mark.asyncio
    async def test_create_announcement(self, client: AsyncClient, admin_headers, admin_user):
        response = await client.post(
            "/api/announcements",
            headers=admin_headers,
            data={"title": "Outreach", "content": "Join our outreach program.", "priority": "low"},
            files={"image": ("flyer.png", b"\x89PNG fake", "image/png")},
        )
        assert response.status_code == 201
        announcement = response.json()["data"]["announcement"]
        assert announcement["priority"] == "low"
        assert announcement["image"].startswith("/uploads/")
        assert announcement["createdBy"]["id"] == admin_user.id

    @pytest.mark.asyncio
    async def test_create_defaults_to_medium(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/announcements",
            headers=admin_headers,
            data={"title": "Outreach", "content": "Join our outreach program."},
        )
        assert response.status_code == 201
        assert response.json()["data"]["announcement"]["priority"] == "medium"

    @pytest.mark.asyncio
    async def test_create_requires_title_and_content(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/announcements", headers=admin_headers, data={"title": "Only"})
        assert response.status_code == 400
        assert "content" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_member_cannot_create(self, client: AsyncClient, member_headers):
        response = await client.post(
            "/api/announcements", headers=member_headers, data={"title": "x", "content": "y"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_announcement(self, client: AsyncClient, admin_headers, test_announcement):
        response = await client.patch(
            f"/api/announcements/{test_announcement.id}",
            headers=admin_headers,
            data={"content": "Moved to Saturday."},
        )
        assert response.status_code == 200
        announcement = response.json()["data"]["announcement"]
        assert announcement["content"] == "Moved to Saturday."
        assert announcement["title"] == "General Assembly"

    @pytest.mark.asyncio
    async def test_delete_then_get(self, client: AsyncClient, admin_headers, test_announcement):
        response = await client.delete(f"/api/announcements/{test_announcement.id}", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/announcements/{test_announcement.id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing(self, client: AsyncClient, admin_headers):
        response = await client.delete("/api/announcements/doesnotexist123", headers=admin_headers)
        assert response.status_code == 404
