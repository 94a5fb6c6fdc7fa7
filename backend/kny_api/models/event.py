"""
Event model and the registration/interest join tables.

Registrants and interested users are rows in their own tables rather than
arrays on either aggregate, so a registration is a single insert and the
registrant count is always derived from one place.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from kny_api.models.base import BaseModel

if TYPE_CHECKING:
    from kny_api.models.user import User


class EventStatus(str, Enum):
    """Lifecycle status of an event."""
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Event(BaseModel):
    """Organization event that approved members can register for."""
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("capacity >= 0", name="capacity_non_negative"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # 0 means unlimited
    capacity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    status: Mapped[EventStatus] = mapped_column(
        SQLEnum(
            EventStatus,
            name="eventstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=EventStatus.UPCOMING,
        nullable=False,
        index=True
    )

    created_by_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    created_by: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[created_by_id]
    )
    registrations: Mapped[list["EventRegistration"]] = relationship(
        "EventRegistration",
        back_populates="event",
        cascade="all",
        passive_deletes=True,
        order_by="EventRegistration.created"
    )
    interests: Mapped[list["EventInterest"]] = relationship(
        "EventInterest",
        back_populates="event",
        cascade="all",
        passive_deletes=True,
        order_by="EventInterest.created"
    )

    @property
    def is_full(self) -> bool:
        return self.capacity > 0 and len(self.registrations) >= self.capacity

    def __repr__(self) -> str:
        return f"<Event {self.title} ({self.status.value})>"


class EventRegistration(BaseModel):
    """A user's RSVP for an event."""
    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registrations_event_user"),
    )

    event_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    event: Mapped["Event"] = relationship("Event", back_populates="registrations")
    user: Mapped["User"] = relationship("User", back_populates="registrations")


class EventInterest(BaseModel):
    """A user marking an event as interesting without registering."""
    __tablename__ = "event_interests"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_interests_event_user"),
    )

    event_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    event: Mapped["Event"] = relationship("Event", back_populates="interests")
    user: Mapped["User"] = relationship("User", back_populates="interests")
