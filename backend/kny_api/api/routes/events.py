"""
Events API endpoints.

Endpoints:
- GET /api/events - List events (public)
- GET /api/events/interested - Events the current user is interested in
- GET /api/events/{id} - Get event (public)
- POST /api/events - Create event (admin, multipart)
- PATCH /api/events/{id} - Update event (admin, multipart)
- DELETE /api/events/{id} - Delete event (admin)
- POST/DELETE /api/events/{id}/register - Register / unregister (approved members)
- POST/DELETE /api/events/{id}/interest - Show / withdraw interest (approved members)

Registrations and interests are rows in their own join tables. Registering
locks the event row and inserts one registration in the same transaction as
the capacity check.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from kny_api.api.forms import collect_form
from kny_api.api.responses import event_query, event_to_response
from kny_api.core.deps import require_admin, require_approved
from kny_api.core.exceptions import NotFoundError, ValidationFailedError, format_error_details
from kny_api.db.base import get_db
from kny_api.models.event import Event, EventInterest, EventRegistration, EventStatus
from kny_api.models.user import User
from kny_api.schemas.event import EventCreate, EventData, EventEnvelope, EventListData, EventListEnvelope, EventUpdate
from kny_api.services.uploads import save_image

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSED_STATUSES = (EventStatus.CANCELLED, EventStatus.COMPLETED)


def event_envelope(event: Event) -> EventEnvelope:
    return EventEnvelope(data=EventData(event=event_to_response(event)))


def event_list_envelope(events) -> EventListEnvelope:
    return EventListEnvelope(
        results=len(events),
        data=EventListData(events=[event_to_response(e) for e in events]),
    )


async def get_event_or_404(db: AsyncSession, event_id: str) -> Event:
    """Load an event with its relationships, refreshing anything cached in the session."""
    result = await db.execute(
        event_query()
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("No event found with that ID")
    return event


async def lock_event(db: AsyncSession, event_id: str) -> Event:
    """Load an event FOR UPDATE with its current registrations."""
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .options(selectinload(Event.registrations))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("No event found with that ID")
    return event


@router.get("", response_model=EventListEnvelope)
async def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    upcoming: Optional[bool] = Query(None, description="Only events dated in the future"),
    db: AsyncSession = Depends(get_db)
):
    """List events sorted by date ascending."""
    query = event_query()

    if status_filter is not None:
        query = query.where(Event.status == status_filter)
    if upcoming:
        query = query.where(Event.date >= datetime.now(timezone.utc))

    result = await db.execute(query.order_by(Event.date.asc()))
    return event_list_envelope(result.scalars().all())


@router.get("/interested", response_model=EventListEnvelope)
async def list_interested_events(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_approved)
):
    """List the events the current user has shown interest in."""
    query = (
        event_query()
        .join(EventInterest, EventInterest.event_id == Event.id)
        .where(EventInterest.user_id == current_user.id)
        .order_by(Event.date.asc())
    )
    result = await db.execute(query)
    return event_list_envelope(result.scalars().all())


@router.get("/{event_id}", response_model=EventEnvelope)
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Get an event with its creator, registrants and interested users."""
    return event_envelope(await get_event_or_404(db, event_id))


@router.post("", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def create_event(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    capacity: Optional[str] = Form(None),
    event_status: Optional[str] = Form(None, alias="status"),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a new event."""
    try:
        event_data = EventCreate.model_validate(collect_form(
            title=title,
            description=description,
            date=date,
            location=location,
            capacity=capacity,
            status=event_status,
        ))
    except ValidationError as e:
        raise ValidationFailedError(format_error_details(e.errors()))

    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=event_data.date,
        location=event_data.location,
        capacity=event_data.capacity,
        status=event_data.status,
        image=await save_image(image),
        created_by_id=current_user.id,
    )
    db.add(event)
    await db.flush()
    logger.info("Event %s created by %s", event.id, current_user.username)

    return event_envelope(await get_event_or_404(db, event.id))


@router.patch("/{event_id}", response_model=EventEnvelope)
async def update_event(
    event_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    capacity: Optional[str] = Form(None),
    event_status: Optional[str] = Form(None, alias="status"),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Partially update an event."""
    event = await get_event_or_404(db, event_id)

    try:
        event_data = EventUpdate.model_validate(collect_form(
            title=title,
            description=description,
            date=date,
            location=location,
            capacity=capacity,
            status=event_status,
        ))
    except ValidationError as e:
        raise ValidationFailedError(format_error_details(e.errors()))

    for field, value in event_data.model_dump(exclude_unset=True).items():
        setattr(event, field, value)

    image_path = await save_image(image)
    if image_path:
        event.image = image_path

    try:
        await db.flush()
    except IntegrityError:
        raise ValidationFailedError("Invalid event data")

    logger.info("Event %s updated by %s", event.id, current_user.username)
    return event_envelope(await get_event_or_404(db, event.id))


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Delete an event along with its registrations and interests."""
    event = await get_event_or_404(db, event_id)
    await db.delete(event)
    await db.flush()
    logger.info("Event %s deleted by %s", event_id, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# REGISTRATION & INTEREST
# ============================================================================

@router.post("/{event_id}/register", response_model=EventEnvelope)
async def register_for_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_approved)
):
    """Register the current user for an event."""
    event = await lock_event(db, event_id)

    if event.status in CLOSED_STATUSES:
        raise ValidationFailedError(f"Cannot register for a {event.status.value} event")

    if any(r.user_id == current_user.id for r in event.registrations):
        raise ValidationFailedError("You are already registered for this event")

    if event.is_full:
        raise ValidationFailedError("Event has reached maximum capacity")

    db.add(EventRegistration(event_id=event.id, user_id=current_user.id))
    try:
        await db.flush()
    except IntegrityError:
        raise ValidationFailedError("You are already registered for this event")

    logger.info("User %s registered for event %s", current_user.username, event.id)
    return event_envelope(await get_event_or_404(db, event.id))


@router.delete("/{event_id}/register", response_model=EventEnvelope)
async def unregister_from_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_approved)
):
    """Cancel the current user's registration."""
    event = await get_event_or_404(db, event_id)

    result = await db.execute(
        select(EventRegistration).where(
            EventRegistration.event_id == event.id,
            EventRegistration.user_id == current_user.id,
        )
    )
    registration = result.scalar_one_or_none()
    if registration is None:
        raise ValidationFailedError("You are not registered for this event")

    await db.delete(registration)
    await db.flush()
    logger.info("User %s unregistered from event %s", current_user.username, event.id)
    return event_envelope(await get_event_or_404(db, event.id))


@router.post("/{event_id}/interest", response_model=EventEnvelope)
async def show_interest(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_approved)
):
    """Mark the event as interesting for the current user."""
    event = await get_event_or_404(db, event_id)

    if any(i.user_id == current_user.id for i in event.interests):
        raise ValidationFailedError("You have already shown interest in this event")

    db.add(EventInterest(event_id=event.id, user_id=current_user.id))
    try:
        await db.flush()
    except IntegrityError:
        raise ValidationFailedError("You have already shown interest in this event")

    return event_envelope(await get_event_or_404(db, event.id))


@router.delete("/{event_id}/interest", response_model=EventEnvelope)
async def remove_interest(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_approved)
):
    """Withdraw the current user's interest."""
    event = await get_event_or_404(db, event_id)

    result = await db.execute(
        select(EventInterest).where(
            EventInterest.event_id == event.id,
            EventInterest.user_id == current_user.id,
        )
    )
    interest = result.scalar_one_or_none()
    if interest is None:
        raise ValidationFailedError("You have not shown interest in this event")

    await db.delete(interest)
    await db.flush()
    return event_envelope(await get_event_or_404(db, event.id))
