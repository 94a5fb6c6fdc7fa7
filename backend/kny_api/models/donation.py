"""
Donation model for tracking donations to the organization.
"""
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Numeric, DateTime, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from kny_api.models.base import BaseModel, utcnow

if TYPE_CHECKING:
    from kny_api.models.user import User


class DonationStatus(str, Enum):
    """Status of a donation."""
    COMPLETED = "Completed"
    REFUNDED = "Refunded"


class DonationMethod(str, Enum):
    """How the donation was received."""
    CASH = "Cash"
    GCASH = "G-Cash"


class Donation(BaseModel):
    """
    Donation model.

    The donor is free text and need not be a registered user.
    """
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="amount_non_negative"),
    )

    donor_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False
    )

    # Use values_callable to store the display values in DB
    method: Mapped[DonationMethod] = mapped_column(
        SQLEnum(
            DonationMethod,
            name="donationmethod",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False
    )
    status: Mapped[DonationStatus] = mapped_column(
        SQLEnum(
            DonationStatus,
            name="donationstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=DonationStatus.COMPLETED,
        nullable=False,
        index=True
    )

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True
    )

    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Created by (user who recorded the donation)
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
        return f"<Donation {self.amount} {self.method.value} ({self.status.value})>"
