"""
Admin dashboard endpoints. All routes require an admin.

Endpoints:
- GET /api/admin/stats - Dashboard statistics
- GET /api/admin/users - Same listing as GET /api/users
"""
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.api.responses import donation_to_response
from kny_api.api.routes.users import list_users
from kny_api.core.deps import require_admin
from kny_api.db.base import get_db
from kny_api.models.announcement import Announcement
from kny_api.models.donation import Donation, DonationStatus
from kny_api.models.event import Event
from kny_api.models.user import User
from kny_api.schemas.admin import (
    CompletedDonationStats, DashboardStats, DashboardStatsEnvelope, MethodDistribution,
)
from kny_api.schemas.user import UserListEnvelope

router = APIRouter(dependencies=[Depends(require_admin)])


async def count_rows(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar() or 0


@router.get("/stats", response_model=DashboardStatsEnvelope)
async def dashboard_stats(db: AsyncSession = Depends(get_db)):
    """
    Dashboard statistics.

    Every figure comes from its own count or aggregate query.
    """
    total_users = await count_rows(db, select(func.count(User.id)))
    pending_users = await count_rows(
        db, select(func.count(User.id)).where(User.is_approved.is_(False))
    )
    total_events = await count_rows(db, select(func.count(Event.id)))
    total_announcements = await count_rows(db, select(func.count(Announcement.id)))
    total_donations = await count_rows(db, select(func.count(Donation.id)))

    completed = (await db.execute(
        select(
            func.coalesce(func.sum(Donation.amount), 0).label("total"),
            func.count(Donation.id).label("count"),
            func.avg(Donation.amount).label("average"),
        ).where(Donation.status == DonationStatus.COMPLETED)
    )).one()

    recent = (await db.execute(
        select(Donation).order_by(Donation.date.desc()).limit(5)
    )).scalars().all()

    distribution_rows = (await db.execute(
        select(
            Donation.method,
            func.count(Donation.id).label("count"),
            func.coalesce(func.sum(Donation.amount), 0).label("total"),
        ).group_by(Donation.method)
    )).all()

    completed_total = float(completed.total or 0)
    return DashboardStatsEnvelope(
        data=DashboardStats(
            total_users=total_users,
            pending_users=pending_users,
            total_events=total_events,
            total_announcements=total_announcements,
            total_donations=total_donations,
            total_donation_amount=completed_total,
            stats=CompletedDonationStats(
                total_amount=completed_total,
                total_count=completed.count or 0,
                average_amount=round(float(completed.average or 0), 2),
            ),
            recent_donations=[donation_to_response(d) for d in recent],
            method_distribution=[
                MethodDistribution(method=row.method.value, count=row.count, total=float(row.total))
                for row in distribution_rows
            ],
        )
    )


router.add_api_route("/users", list_users, methods=["GET"], response_model=UserListEnvelope)
