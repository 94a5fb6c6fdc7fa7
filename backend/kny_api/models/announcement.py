"""
Announcement model.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from kny_api.models.base import BaseModel

if TYPE_CHECKING:
    from kny_api.models.user import User


class AnnouncementPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Announcement(BaseModel):
    """Notice posted by an admin to all members."""
    __tablename__ = "announcements"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    priority: Mapped[AnnouncementPriority] = mapped_column(
        SQLEnum(
            AnnouncementPriority,
            name="announcementpriority",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=AnnouncementPriority.MEDIUM,
        nullable=False
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    created_by: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[created_by_id]
    )

    def __repr__(self) -> str:
        return f"<Announcement {self.title}>"
