"""
Dashboard schemas for the admin area.
"""
from pydantic import Field

from kny_api.schemas.common import CamelModel, Envelope
from kny_api.schemas.donation import DonationResponse


class CompletedDonationStats(CamelModel):
    total_amount: float = 0
    total_count: int = 0
    average_amount: float = 0


class MethodDistribution(CamelModel):
    method: str
    count: int
    total: float


class DashboardStats(CamelModel):
    total_users: int
    pending_users: int
    total_events: int
    total_announcements: int
    total_donations: int
    total_donation_amount: float
    stats: CompletedDonationStats
    recent_donations: list[DonationResponse] = Field(default_factory=list)
    method_distribution: list[MethodDistribution] = Field(default_factory=list)


class DashboardStatsEnvelope(Envelope):
    data: DashboardStats
