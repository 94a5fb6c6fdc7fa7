"""
Model to response-schema converters shared by the route modules.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from kny_api.models.announcement import Announcement
from kny_api.models.donation import Donation
from kny_api.models.event import Event, EventInterest, EventRegistration
from kny_api.models.user import User
from kny_api.schemas.announcement import AnnouncementResponse
from kny_api.schemas.common import UserSummary
from kny_api.schemas.donation import DonationResponse
from kny_api.schemas.event import EventResponse
from kny_api.schemas.user import Address, UserResponse


def user_to_response(user: User) -> UserResponse:
    """Convert User model to UserResponse schema."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        name=user.name,
        age=user.age,
        birthday=user.birthday,
        phone=user.phone,
        address=Address(
            street=user.street,
            city=user.city,
            state=user.state,
            zip_code=user.zip_code,
            country=user.country,
        ),
        member_org=user.member_org.value if user.member_org else None,
        organization=user.organization,
        committee=user.committee.value if user.committee else None,
        profile_picture=user.profile_picture,
        role=user.role.value,
        is_approved=user.is_approved,
        created=user.created,
        updated=user.updated,
    )


def user_summary(user: Optional[User]) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary(id=user.id, name=user.name, email=user.email)


def event_query():
    """Select events with creator and attendee lists eagerly loaded."""
    return select(Event).options(
        selectinload(Event.created_by),
        selectinload(Event.registrations).selectinload(EventRegistration.user),
        selectinload(Event.interests).selectinload(EventInterest.user),
    )


def event_to_response(event: Event) -> EventResponse:
    """Convert Event model to EventResponse schema."""
    registered = [user_summary(r.user) for r in event.registrations if r.user is not None]
    interested = [user_summary(i.user) for i in event.interests if i.user is not None]
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        location=event.location,
        image=event.image,
        capacity=event.capacity,
        status=event.status.value,
        created_by=user_summary(event.created_by),
        registered_users=registered,
        interested_users=interested,
        registered_count=len(registered),
        interested_count=len(interested),
        created=event.created,
        updated=event.updated,
    )


def announcement_to_response(announcement: Announcement) -> AnnouncementResponse:
    return AnnouncementResponse(
        id=announcement.id,
        title=announcement.title,
        content=announcement.content,
        image=announcement.image,
        priority=announcement.priority.value,
        expires_at=announcement.expires_at,
        created_by=user_summary(announcement.created_by),
        created=announcement.created,
        updated=announcement.updated,
    )


def donation_to_response(donation: Donation) -> DonationResponse:
    return DonationResponse(
        id=donation.id,
        donor_name=donation.donor_name,
        amount=float(donation.amount),
        method=donation.method.value,
        status=donation.status.value,
        date=donation.date,
        reference_number=donation.reference_number,
        notes=donation.notes,
        created_by=donation.created_by_id,
        created=donation.created,
        updated=donation.updated,
    )
