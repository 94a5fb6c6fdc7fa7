"""
Tests for admin account provisioning.
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.core.security import verify_password
from kny_api.models.user import User, UserRole
from kny_api.services.accounts import ensure_admin_user


async def user_count(db_session: AsyncSession) -> int:
    return (await db_session.execute(select(func.count(User.id)))).scalar()


class TestEnsureAdminUser:
    """Test ensure_admin_user."""

    @pytest.mark.asyncio
    async def test_creates_approved_admin(self, db_session: AsyncSession):
        user, created = await ensure_admin_user(
            db_session, "root", "Root@Example.com", "rootpassword", name="Site Admin"
        )
        assert created is True
        assert user.role == UserRole.ADMIN
        assert user.is_approved is True
        assert user.email == "root@example.com"
        assert user.name == "Site Admin"
        assert verify_password("rootpassword", user.password_hash)

    @pytest.mark.asyncio
    async def test_is_idempotent(self, db_session: AsyncSession):
        first, _ = await ensure_admin_user(db_session, "root", "root@example.com", "rootpassword")
        second, created = await ensure_admin_user(db_session, "root", "root@example.com", "rootpassword")
        assert created is False
        assert second.id == first.id
        assert await user_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_promotes_existing_member_by_email(self, db_session: AsyncSession, pending_user):
        original_hash = pending_user.password_hash
        user, created = await ensure_admin_user(
            db_session, "someone-else", "pending@example.com", "ignored-password"
        )
        assert created is False
        assert user.id == pending_user.id
        assert user.role == UserRole.ADMIN
        assert user.is_approved is True
        assert user.password_hash == original_hash

    @pytest.mark.asyncio
    async def test_seeded_admin_can_log_in(self, client, db_session: AsyncSession):
        await ensure_admin_user(db_session, "root", "root@example.com", "rootpassword")
        response = await client.post(
            "/api/users/login", json={"username": "root", "password": "rootpassword"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["role"] == "Admin"
