"""
Pydantic schemas for Donation endpoints.
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import Field

from kny_api.models.donation import DonationMethod, DonationStatus
from kny_api.schemas.common import CamelModel, Envelope


class DonationCreate(CamelModel):
    """Create a new donation."""
    donor_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    method: DonationMethod
    status: DonationStatus = DonationStatus.COMPLETED
    date: Optional[datetime] = None  # defaults to now
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class DonationUpdate(CamelModel):
    """Update a donation."""
    donor_name: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    method: Optional[DonationMethod] = None
    status: Optional[DonationStatus] = None
    date: Optional[datetime] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class DonationResponse(CamelModel):
    """Donation response."""
    id: str
    donor_name: str
    amount: float
    method: str
    status: str
    date: datetime
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created: datetime
    updated: datetime


class DonationData(CamelModel):
    donation: DonationResponse


class DonationEnvelope(Envelope):
    data: DonationData


class DonationListData(CamelModel):
    donations: list[DonationResponse]


class DonationListEnvelope(Envelope):
    results: int
    data: DonationListData


class DonationPageEnvelope(DonationListEnvelope):
    """Paginated list of donations."""
    total: int
    pages: int
    current_page: int


class MethodStats(CamelModel):
    """Aggregate figures for completed donations of one method."""
    method: str
    total_amount: float
    avg_amount: float
    min_amount: float
    max_amount: float
    count: int


class DonationStatsData(CamelModel):
    stats: list[MethodStats]


class DonationStatsEnvelope(Envelope):
    data: DonationStatsData
