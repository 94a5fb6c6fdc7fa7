"""
Pydantic schemas for Announcement endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import Field

from kny_api.models.announcement import AnnouncementPriority
from kny_api.schemas.common import CamelModel, Envelope, UserSummary


class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    priority: AnnouncementPriority = AnnouncementPriority.MEDIUM
    expires_at: Optional[datetime] = None
    image: Optional[str] = Field(None, max_length=500)


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    priority: Optional[AnnouncementPriority] = None
    expires_at: Optional[datetime] = None
    image: Optional[str] = Field(None, max_length=500)


class AnnouncementResponse(CamelModel):
    id: str
    title: str
    content: str
    image: Optional[str] = None
    priority: str
    expires_at: Optional[datetime] = None
    created_by: Optional[UserSummary] = None
    created: datetime
    updated: datetime


class AnnouncementData(CamelModel):
    announcement: AnnouncementResponse


class AnnouncementEnvelope(Envelope):
    data: AnnouncementData


class AnnouncementListData(CamelModel):
    announcements: list[AnnouncementResponse]


class AnnouncementListEnvelope(Envelope):
    results: int
    data: AnnouncementListData
