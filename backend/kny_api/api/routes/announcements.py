"""
Announcements API endpoints.

Endpoints:
- GET /api/announcements - List announcements (public, newest first)
- GET /api/announcements/{id} - Get announcement (public)
- POST /api/announcements - Create announcement (admin, multipart)
- PATCH /api/announcements/{id} - Update announcement (admin, multipart)
- DELETE /api/announcements/{id} - Delete announcement (admin)
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kny_api.api.forms import collect_form
from kny_api.api.responses import announcement_to_response
from kny_api.core.deps import require_admin
from kny_api.core.exceptions import NotFoundError, ValidationFailedError, format_error_details
from kny_api.db.base import get_db
from kny_api.models.announcement import Announcement, AnnouncementPriority
from kny_api.models.user import User
from kny_api.schemas.announcement import (
    AnnouncementCreate, AnnouncementData, AnnouncementEnvelope,
    AnnouncementListData, AnnouncementListEnvelope, AnnouncementUpdate,
)
from kny_api.services.uploads import save_image

logger = logging.getLogger(__name__)

router = APIRouter()


def announcement_envelope(announcement: Announcement) -> AnnouncementEnvelope:
    return AnnouncementEnvelope(
        data=AnnouncementData(announcement=announcement_to_response(announcement))
    )


async def get_announcement_or_404(db: AsyncSession, announcement_id: str) -> Announcement:
    result = await db.execute(
        select(Announcement)
        .options(selectinload(Announcement.created_by))
        .where(Announcement.id == announcement_id)
        .execution_options(populate_existing=True)
    )
    announcement = result.scalar_one_or_none()
    if announcement is None:
        raise NotFoundError("No announcement found with that ID")
    return announcement


@router.get("", response_model=AnnouncementListEnvelope)
async def list_announcements(
    priority: Optional[AnnouncementPriority] = Query(None),
    include_expired: bool = Query(False, alias="includeExpired"),
    db: AsyncSession = Depends(get_db)
):
    """List announcements, newest first. Expired ones are hidden by default."""
    query = select(Announcement).options(selectinload(Announcement.created_by))

    if priority is not None:
        query = query.where(Announcement.priority == priority)
    if not include_expired:
        query = query.where(or_(
            Announcement.expires_at.is_(None),
            Announcement.expires_at > datetime.now(timezone.utc),
        ))

    result = await db.execute(query.order_by(Announcement.created.desc()))
    announcements = result.scalars().all()
    return AnnouncementListEnvelope(
        results=len(announcements),
        data=AnnouncementListData(
            announcements=[announcement_to_response(a) for a in announcements]
        ),
    )


@router.get("/{announcement_id}", response_model=AnnouncementEnvelope)
async def get_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db)
):
    return announcement_envelope(await get_announcement_or_404(db, announcement_id))


@router.post("", response_model=AnnouncementEnvelope, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    priority: Optional[str] = Form(None),
    expires_at: Optional[str] = Form(None, alias="expiresAt"),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a new announcement."""
    try:
        data = AnnouncementCreate.model_validate(collect_form(
            title=title,
            content=content,
            priority=priority,
            expires_at=expires_at,
        ))
    except ValidationError as e:
        raise ValidationFailedError(format_error_details(e.errors()))

    announcement = Announcement(
        title=data.title,
        content=data.content,
        priority=data.priority,
        expires_at=data.expires_at,
        image=await save_image(image),
        created_by_id=current_user.id,
    )
    db.add(announcement)
    await db.flush()
    logger.info("Announcement %s created by %s", announcement.id, current_user.username)

    return announcement_envelope(await get_announcement_or_404(db, announcement.id))


@router.patch("/{announcement_id}", response_model=AnnouncementEnvelope)
async def update_announcement(
    announcement_id: str,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    priority: Optional[str] = Form(None),
    expires_at: Optional[str] = Form(None, alias="expiresAt"),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Partially update an announcement."""
    announcement = await get_announcement_or_404(db, announcement_id)

    try:
        data = AnnouncementUpdate.model_validate(collect_form(
            title=title,
            content=content,
            priority=priority,
            expires_at=expires_at,
        ))
    except ValidationError as e:
        raise ValidationFailedError(format_error_details(e.errors()))

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(announcement, field, value)

    image_path = await save_image(image)
    if image_path:
        announcement.image = image_path

    await db.flush()
    return announcement_envelope(await get_announcement_or_404(db, announcement.id))


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    announcement = await get_announcement_or_404(db, announcement_id)
    await db.delete(announcement)
    await db.flush()
    logger.info("Announcement %s deleted by %s", announcement_id, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
