"""
Authentication and authorization dependencies.

``get_current_user`` resolves the bearer token to a fresh ``User`` row on
every request. ``authorize`` layers the role and approval gates on top of it
so a route can declare its whole access policy in one ``Depends``.
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.core.exceptions import ForbiddenError, UnauthorizedError
from kny_api.core.security import verify_token
from kny_api.db.base import get_db
from kny_api.models.user import User, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get the current authenticated user from the bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("You are not logged in. Please log in to get access.")

    user_id = verify_token(credentials.credentials)
    if user_id is None:
        logger.warning("Rejected invalid or expired token")
        raise UnauthorizedError("Invalid or expired token. Please log in again.")

    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise UnauthorizedError("The user belonging to this token no longer exists.")

    return user


def authorize(*roles: str, approved: bool = False):
    """
    Build a dependency that authenticates, then checks role, then approval.

    Roles compare case-insensitively. An empty role list admits any role.
    The approval gate admits approved users and admins.
    """
    allowed = {role.lower() for role in roles}

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if allowed and current_user.role.value.lower() not in allowed:
            raise ForbiddenError("You do not have permission to perform this action")
        if approved and not (current_user.is_approved or current_user.role == UserRole.ADMIN):
            raise ForbiddenError("Your account is not yet approved. Please wait for admin approval.")
        return current_user

    return dependency


def restrict_to(*roles: str):
    return authorize(*roles)


require_admin = restrict_to(UserRole.ADMIN.value)
require_approved = authorize(approved=True)
