"""
Donations API endpoints. All routes require an admin.

Endpoints:
- GET /api/donations - List donations (paginated, filterable)
- GET /api/donations/stats - Completed donation totals per method
- GET /api/donations/export - Download filtered donations as CSV
- POST /api/donations/import - Bulk import donations from CSV
- POST /api/donations - Record a donation
- GET/PATCH/DELETE /api/donations/{id} - Manage one donation
"""
import logging
from datetime import datetime
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kny_api.api.responses import donation_to_response
from kny_api.core.config import settings
from kny_api.core.deps import require_admin
from kny_api.core.exceptions import NotFoundError, ValidationFailedError
from kny_api.db.base import get_db
from kny_api.models.base import utcnow
from kny_api.models.donation import Donation, DonationMethod, DonationStatus
from kny_api.models.user import User
from kny_api.schemas.donation import (
    DonationCreate, DonationData, DonationEnvelope, DonationListData,
    DonationListEnvelope, DonationPageEnvelope, DonationStatsData,
    DonationStatsEnvelope, DonationUpdate, MethodStats,
)
from kny_api.services.donation_csv import donations_to_csv, parse_donations_csv

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

REQUIRED_FIELDS = {"donor_name", "amount", "method", "status", "date"}


class DonationFilters:
    """Query filters shared by the list and export endpoints."""

    def __init__(
        self,
        status: Optional[DonationStatus] = Query(None),
        method: Optional[DonationMethod] = Query(None),
        search: Optional[str] = Query(None, description="Donor name or reference number"),
        start_date: Optional[datetime] = Query(None, alias="startDate"),
        end_date: Optional[datetime] = Query(None, alias="endDate"),
    ):
        self.status = status
        self.method = method
        self.search = search
        self.start_date = start_date
        self.end_date = end_date

    def apply(self, query):
        if self.status is not None:
            query = query.where(Donation.status == self.status)
        if self.method is not None:
            query = query.where(Donation.method == self.method)
        if self.search:
            pattern = f"%{self.search}%"
            query = query.where(or_(
                Donation.donor_name.ilike(pattern),
                Donation.reference_number.ilike(pattern),
            ))
        if self.start_date is not None:
            query = query.where(Donation.date >= self.start_date)
        if self.end_date is not None:
            query = query.where(Donation.date <= self.end_date)
        return query


def donation_envelope(donation: Donation) -> DonationEnvelope:
    return DonationEnvelope(data=DonationData(donation=donation_to_response(donation)))


async def get_donation_or_404(db: AsyncSession, donation_id: str) -> Donation:
    donation = await db.get(Donation, donation_id, populate_existing=True)
    if donation is None:
        raise NotFoundError("No donation found with that ID")
    return donation


@router.get("", response_model=DonationPageEnvelope)
async def list_donations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    filters: DonationFilters = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """List donations, most recent first."""
    query = filters.apply(select(Donation))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Donation.date.desc()).offset((page - 1) * limit).limit(limit)
    donations = (await db.execute(query)).scalars().all()

    return DonationPageEnvelope(
        results=len(donations),
        total=total,
        pages=ceil(total / limit) if total > 0 else 0,
        current_page=page,
        data=DonationListData(donations=[donation_to_response(d) for d in donations]),
    )


@router.get("/stats", response_model=DonationStatsEnvelope)
async def donation_stats(db: AsyncSession = Depends(get_db)):
    """Totals for completed donations grouped by payment method."""
    total = func.sum(Donation.amount).label("total_amount")
    query = (
        select(
            Donation.method,
            total,
            func.avg(Donation.amount).label("avg_amount"),
            func.min(Donation.amount).label("min_amount"),
            func.max(Donation.amount).label("max_amount"),
            func.count(Donation.id).label("count"),
        )
        .where(Donation.status == DonationStatus.COMPLETED)
        .group_by(Donation.method)
        .order_by(total.desc())
    )
    rows = (await db.execute(query)).all()

    stats = [
        MethodStats(
            method=row.method.value,
            total_amount=float(row.total_amount or 0),
            avg_amount=round(float(row.avg_amount or 0), 2),
            min_amount=float(row.min_amount or 0),
            max_amount=float(row.max_amount or 0),
            count=row.count,
        )
        for row in rows
    ]
    return DonationStatsEnvelope(data=DonationStatsData(stats=stats))


@router.get("/export")
async def export_donations(
    filters: DonationFilters = Depends(),
    db: AsyncSession = Depends(get_db)
) -> StreamingResponse:
    """Export filtered donations as a CSV attachment."""
    query = filters.apply(select(Donation)).order_by(Donation.date.desc())
    donations = (await db.execute(query)).scalars().all()

    content = donations_to_csv(donations)
    logger.info("Exported %d donations", len(donations))
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=donations.csv"},
    )


@router.post("/import", response_model=DonationListEnvelope, status_code=status.HTTP_201_CREATED)
async def import_donations(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Import donations from CSV. One bad row rejects the whole file."""
    content = await file.read()
    if len(content) > settings.MAX_CSV_SIZE:
        raise ValidationFailedError(
            f"CSV exceeds the maximum size of {settings.MAX_CSV_SIZE // (1024 * 1024)}MB"
        )

    donations = parse_donations_csv(content, created_by_id=current_user.id)
    db.add_all(donations)
    await db.flush()
    logger.info("Imported %d donations by %s", len(donations), current_user.username)

    return DonationListEnvelope(
        results=len(donations),
        data=DonationListData(donations=[donation_to_response(d) for d in donations]),
    )


@router.post("", response_model=DonationEnvelope, status_code=status.HTTP_201_CREATED)
async def create_donation(
    donation_data: DonationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Record a donation."""
    donation = Donation(
        donor_name=donation_data.donor_name,
        amount=donation_data.amount,
        method=donation_data.method,
        status=donation_data.status,
        date=donation_data.date or utcnow(),
        reference_number=donation_data.reference_number,
        notes=donation_data.notes,
        created_by_id=current_user.id,
    )
    db.add(donation)
    await db.flush()
    logger.info("Donation %s recorded by %s", donation.id, current_user.username)
    return donation_envelope(donation)


@router.get("/{donation_id}", response_model=DonationEnvelope)
async def get_donation(
    donation_id: str,
    db: AsyncSession = Depends(get_db)
):
    return donation_envelope(await get_donation_or_404(db, donation_id))


@router.patch("/{donation_id}", response_model=DonationEnvelope)
async def update_donation(
    donation_id: str,
    donation_data: DonationUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Partially update a donation."""
    donation = await get_donation_or_404(db, donation_id)

    for field, value in donation_data.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(donation, field, value)

    await db.flush()
    return donation_envelope(donation)


@router.delete("/{donation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_donation(
    donation_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    donation = await get_donation_or_404(db, donation_id)
    await db.delete(donation)
    await db.flush()
    logger.info("Donation %s deleted by %s", donation_id, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
