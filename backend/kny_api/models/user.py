"""
User model.
"""
from datetime import date
from enum import Enum
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, Integer, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from kny_api.models.base import BaseModel

if TYPE_CHECKING:
    from kny_api.models.event import EventRegistration, EventInterest


class UserRole(str, Enum):
    """Account role."""
    MEMBER = "Member"
    ADMIN = "Admin"


class MemberOrg(str, Enum):
    """Whether the user already belongs to a partner organization."""
    YES = "yes"
    NO = "no"


class Committee(str, Enum):
    """Volunteer committees a member can join."""
    CAMPAIGN_AND_ADVOCACY = "Campaign and Advocacy"
    PROGRAMS_AND_EVENTS = "Programs and Events"
    SOCIAL_MEDIA_AND_COMMUNICATIONS = "Social Media and Communications"
    FINANCE = "Finance"
    MEMBERSHIP = "Membership"


class User(BaseModel):
    """User model for authentication, profile and membership state."""
    __tablename__ = "users"

    # Core auth fields
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Membership
    member_org: Mapped[Optional[MemberOrg]] = mapped_column(
        SQLEnum(
            MemberOrg,
            name="memberorg",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=True
    )
    organization: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    committee: Mapped[Optional[Committee]] = mapped_column(
        SQLEnum(
            Committee,
            name="committee",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=True
    )

    # Access control
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            name="userrole",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=UserRole.MEMBER,
        nullable=False,
        index=True
    )
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    # Relationships (rows are removed by ON DELETE CASCADE)
    registrations: Mapped[list["EventRegistration"]] = relationship(
        "EventRegistration",
        back_populates="user",
        cascade="all",
        passive_deletes=True
    )
    interests: Mapped[list["EventInterest"]] = relationship(
        "EventInterest",
        back_populates="user",
        cascade="all",
        passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User {self.username}>"
