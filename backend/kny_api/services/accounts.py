"""
Account provisioning helpers.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.core.security import get_password_hash
from kny_api.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_AGE = 30


async def ensure_admin_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    name: str = "Administrator"
) -> tuple[User, bool]:
    """
    Make sure an approved admin with this username or email exists.

    An existing account is promoted and approved; its password is left alone.
    Returns the user and whether it was newly created. The caller commits.
    """
    email = email.strip().lower()
    result = await db.execute(
        select(User).where(or_(User.username == username, User.email == email))
    )
    user = result.scalars().first()

    if user is not None:
        if user.role != UserRole.ADMIN or not user.is_approved:
            user.role = UserRole.ADMIN
            user.is_approved = True
            await db.flush()
            logger.info("Promoted existing user %s to Admin", user.username)
        return user, False

    user = User(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        name=name,
        age=DEFAULT_ADMIN_AGE,
        role=UserRole.ADMIN,
        is_approved=True,
    )
    db.add(user)
    await db.flush()
    logger.info("Created admin user %s", username)
    return user, True
