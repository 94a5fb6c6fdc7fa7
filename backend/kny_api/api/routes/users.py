"""
User endpoints: registration, login, the current user's account, and admin
management of members.

Endpoints:
- POST /api/users/register - Register (public)
- POST /api/users/login - Login (public)
- GET/PATCH /api/users/me - Own profile
- PATCH /api/users/me/password - Change own password
- POST /api/users/me/profile-picture - Upload own profile picture
- GET /api/users/me/events - Events the current user is registered for
- GET /api/users - List users (admin)
- GET /api/users/pending - List users awaiting approval (admin)
- GET/PATCH/DELETE /api/users/{id} - Manage one user (admin)
- PUT /api/users/{id}/approve | reject | role - Membership actions (admin)
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.api.responses import event_query, event_to_response, user_to_response
from kny_api.core.config import settings
from kny_api.core.deps import get_current_user, require_admin
from kny_api.core.exceptions import NotFoundError, ServerError, UnauthorizedError, ValidationFailedError
from kny_api.core.security import create_access_token, get_password_hash, verify_and_update, verify_password
from kny_api.db.base import get_db
from kny_api.models.event import Event, EventRegistration
from kny_api.models.user import User, UserRole
from kny_api.schemas.event import EventListData, EventListEnvelope
from kny_api.schemas.user import (
    AdminUserUpdate, PasswordChange, ProfileUpdate, RoleUpdate,
    TokenEnvelope, UserData, UserEnvelope, UserListData, UserListEnvelope,
    UserLogin, UserRegister,
)
from kny_api.services.email import email_service
from kny_api.services.uploads import save_image

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"
ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")
REQUIRED_FIELDS = {"username", "email", "name", "age", "role", "is_approved"}


def token_envelope(user: User) -> TokenEnvelope:
    return TokenEnvelope(
        token=create_access_token(subject=user.id),
        data=UserData(user=user_to_response(user)),
    )


def user_envelope(user: User) -> UserEnvelope:
    return UserEnvelope(data=UserData(user=user_to_response(user)))


def user_list_envelope(users: list[User]) -> UserListEnvelope:
    return UserListEnvelope(
        results=len(users),
        data=UserListData(users=[user_to_response(u) for u in users]),
    )


async def find_existing_user(db: AsyncSession, username: str, email: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(or_(User.email == email, User.username == username))
    )
    return result.scalars().first()


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise NotFoundError("No user found with that ID")
    return user


async def ensure_unique(
    db: AsyncSession,
    user: User,
    email: Optional[str] = None,
    username: Optional[str] = None
) -> None:
    """Reject an email or username already held by another account."""
    if email is not None:
        result = await db.execute(select(User.id).where(User.email == email, User.id != user.id))
        if result.first() is not None:
            raise ValidationFailedError("Email is already in use")
    if username is not None:
        result = await db.execute(select(User.id).where(User.username == username, User.id != user.id))
        if result.first() is not None:
            raise ValidationFailedError("Username is already in use")


def apply_profile_update(user: User, update_data: dict) -> None:
    address = update_data.pop("address", None)
    if address:
        for field in ADDRESS_FIELDS:
            if field in address:
                setattr(user, field, address[field])
    for field, value in update_data.items():
        # Explicit nulls cannot clear required columns
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(user, field, value)


async def flush_user(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError:
        raise ValidationFailedError(DUPLICATE_USER_MESSAGE)


# ============================================================================
# AUTHENTICATION
# ============================================================================

@router.post("/register", response_model=TokenEnvelope, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new member. The account starts unapproved."""
    email = user_data.email.lower()

    try:
        existing = await asyncio.wait_for(
            find_existing_user(db, user_data.username, email),
            timeout=settings.REGISTRATION_LOOKUP_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.error("Duplicate lookup timed out while registering %s", user_data.username)
        raise ServerError("Server error during registration. Please try again.")

    if existing is not None:
        raise ValidationFailedError(DUPLICATE_USER_MESSAGE)

    user = User(
        username=user_data.username,
        email=email,
        password_hash=get_password_hash(user_data.password),
        name=user_data.name,
        age=user_data.age,
        birthday=user_data.birthday,
        member_org=user_data.member_org,
        organization=user_data.organization,
        committee=user_data.committee,
        role=UserRole.MEMBER,
        is_approved=False,
    )
    db.add(user)
    await flush_user(db)
    await db.commit()  # Commit immediately so subsequent login can find the user
    logger.info("Registered user %s (%s)", user.username, user.id)

    if not await email_service.send_registration_received(user):
        logger.warning("Registration email to %s was not delivered", user.email)

    return token_envelope(user)


@router.post("/login", response_model=TokenEnvelope)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate with username and password. Not gated by approval."""
    result = await db.execute(select(User).where(User.username == credentials.username))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    valid, new_hash = verify_and_update(credentials.password, user.password_hash)
    if not valid:
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
    if new_hash:
        user.password_hash = new_hash
        await db.flush()
        logger.info("Upgraded password hash for %s", user.username)

    return token_envelope(user)


# ============================================================================
# CURRENT USER
# ============================================================================

@router.get("/me", response_model=UserEnvelope)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the current user's profile."""
    return user_envelope(current_user)


@router.patch("/me", response_model=UserEnvelope)
async def update_me(
    profile: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update the current user's own profile."""
    update_data = profile.model_dump(exclude_unset=True)
    if update_data.get("email"):
        update_data["email"] = update_data["email"].lower()
        await ensure_unique(db, current_user, email=update_data["email"])

    apply_profile_update(current_user, update_data)
    await flush_user(db)
    return user_envelope(current_user)


@router.patch("/me/password", response_model=UserEnvelope)
async def change_password(
    password_data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Change the current user's password."""
    if not verify_password(password_data.current_password, current_user.password_hash):
        raise ValidationFailedError("Current password is incorrect")

    current_user.password_hash = get_password_hash(password_data.new_password)
    await db.flush()
    logger.info("Password changed for %s", current_user.username)
    return user_envelope(current_user)


@router.post("/me/profile-picture", response_model=UserEnvelope)
async def upload_profile_picture(
    profile_picture: UploadFile = File(..., alias="profilePicture"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Upload a profile picture for the current user."""
    current_user.profile_picture = await save_image(profile_picture)
    await db.flush()
    return user_envelope(current_user)


@router.get("/me/events", response_model=EventListEnvelope)
async def my_events(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the events the current user is registered for."""
    query = (
        event_query()
        .join(EventRegistration, EventRegistration.event_id == Event.id)
        .where(EventRegistration.user_id == current_user.id)
        .order_by(Event.date.asc())
    )
    events = (await db.execute(query)).scalars().unique().all()
    return EventListEnvelope(
        results=len(events),
        data=EventListData(events=[event_to_response(e) for e in events]),
    )


# ============================================================================
# ADMIN
# ============================================================================

@router.get("", response_model=UserListEnvelope)
async def list_users(
    approved: Optional[bool] = Query(None),
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """List users, newest first."""
    query = select(User)

    if approved is not None:
        query = query.where(User.is_approved == approved)

    if role:
        for candidate in UserRole:
            if candidate.value.lower() == role.lower():
                query = query.where(User.role == candidate)
                break

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            User.name.ilike(pattern),
            User.username.ilike(pattern),
            User.email.ilike(pattern),
        ))

    users = (await db.execute(query.order_by(User.created.desc()))).scalars().all()
    return user_list_envelope(users)


@router.get("/pending", response_model=UserListEnvelope)
async def list_pending_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """List users awaiting approval, oldest first."""
    result = await db.execute(
        select(User).where(User.is_approved.is_(False)).order_by(User.created.asc())
    )
    return user_list_envelope(result.scalars().all())


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Get a user by ID."""
    return user_envelope(await get_user_or_404(db, user_id))


@router.patch("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: str,
    user_data: AdminUserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Partially update any user. Passwords cannot be changed here."""
    if user_data.password is not None:
        raise ValidationFailedError(
            "This route is not for password updates. Please use /me/password."
        )

    user = await get_user_or_404(db, user_id)
    update_data = user_data.model_dump(exclude_unset=True, exclude={"password"})
    if update_data.get("email"):
        update_data["email"] = update_data["email"].lower()

    await ensure_unique(db, user, email=update_data.get("email"), username=update_data.get("username"))
    apply_profile_update(user, update_data)
    await flush_user(db)
    logger.info("User %s updated by %s", user.username, current_user.username)
    return user_envelope(user)


@router.put("/{user_id}/approve", response_model=UserEnvelope)
async def approve_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Approve a member and notify them by email."""
    user = await get_user_or_404(db, user_id)
    user.is_approved = True
    await db.flush()
    logger.info("User %s approved by %s", user.username, current_user.username)

    if not await email_service.send_registration_approved(user):
        logger.warning("Approval email to %s was not delivered", user.email)

    return user_envelope(user)


@router.put("/{user_id}/reject", response_model=UserEnvelope)
async def reject_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Revoke a member's approval."""
    user = await get_user_or_404(db, user_id)
    user.is_approved = False
    await db.flush()
    logger.info("User %s rejected by %s", user.username, current_user.username)
    return user_envelope(user)


@router.put("/{user_id}/role", response_model=UserEnvelope)
async def update_user_role(
    user_id: str,
    role_data: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Set a user's role to Admin or Member."""
    if not role_data.role:
        raise ValidationFailedError("Role is required")

    valid_roles = [r.value for r in UserRole]
    if role_data.role not in valid_roles:
        raise ValidationFailedError(
            "Invalid role. Role must be one of: " + ", ".join(valid_roles)
        )

    user = await get_user_or_404(db, user_id)
    user.role = UserRole(role_data.role)
    await db.flush()
    logger.info("User %s role set to %s by %s", user.username, user.role.value, current_user.username)
    return user_envelope(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Delete a user. Their registrations and interests go with them."""
    user = await get_user_or_404(db, user_id)
    await db.delete(user)
    await db.flush()
    logger.info("User %s deleted by %s", user.username, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
