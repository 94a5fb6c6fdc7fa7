"""
Pydantic schemas for Event endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import Field

from kny_api.models.event import EventStatus
from kny_api.schemas.common import CamelModel, Envelope, UserSummary


class EventCreate(CamelModel):
    """Create a new event."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    date: datetime
    location: str = Field(..., min_length=1, max_length=255)
    capacity: int = Field(default=0, ge=0)  # 0 = unlimited
    status: EventStatus = EventStatus.UPCOMING
    image: Optional[str] = Field(None, max_length=500)


class EventUpdate(CamelModel):
    """Update an event."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    capacity: Optional[int] = Field(None, ge=0)
    status: Optional[EventStatus] = None
    image: Optional[str] = Field(None, max_length=500)


class EventResponse(CamelModel):
    """Event response with creator and attendee lists resolved."""
    id: str
    title: str
    description: str
    date: datetime
    location: str
    image: Optional[str] = None
    capacity: int
    status: str
    created_by: Optional[UserSummary] = None
    registered_users: list[UserSummary] = []
    interested_users: list[UserSummary] = []
    registered_count: int = 0
    interested_count: int = 0
    created: datetime
    updated: datetime


class EventData(CamelModel):
    event: EventResponse


class EventEnvelope(Envelope):
    data: EventData


class EventListData(CamelModel):
    events: list[EventResponse]


class EventListEnvelope(Envelope):
    results: int
    data: EventListData
