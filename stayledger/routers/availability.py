"""
Availability & Calendar API Router

Endpoints:
- GET  /api/hotel/availability          - Free, priced properties for a stay
- POST /api/hotel/availability/block    - Hold an inclusive date range (operator)
- POST /api/hotel/availability/unblock  - Lift holds on an inclusive range (operator)
- GET  /api/hotel/calendar              - Ledger entries with reservation summaries (operator)
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas.availability import (
    AvailabilityResponse, AvailableProperty, BlockRequest, BlockResponse,
    UnblockRequest, UnblockResponse, CalendarResponse
)
from ..services.booking_orchestrator import BookingOrchestrator
from ..services.calendar_service import CalendarService
from ..services.clock import Clock
from ..services.reservation_lifecycle import Actor
from ..utils.dependencies import get_clock, get_tenant, require_operator

router = APIRouter(prefix="/api/hotel", tags=["Availability"])


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    check_in: date,
    check_out: date,
    guests: Optional[int] = Query(None, ge=1),
    property_id: Optional[str] = None,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    clock: Clock = Depends(get_clock)
):
    orchestrator = BookingOrchestrator(db, tenant, clock=clock, settings=settings)
    results = orchestrator.check_availability(check_in, check_out, guests=guests, property_id=property_id)
    return AvailabilityResponse(
        check_in=check_in,
        check_out=check_out,
        guests=guests,
        properties=[
            AvailableProperty(
                property_id=r.rental_property.id,
                property_code=r.rental_property.property_code,
                name=r.rental_property.name,
                property_type=r.rental_property.property_type,
                max_guests=r.rental_property.max_guests,
                nights=r.nights,
                currency=r.currency,
                subtotal=r.subtotal,
                nightly_breakdown=r.quote.breakdown(),
            )
            for r in results
        ],
    )


@router.post("/availability/block", response_model=BlockResponse)
async def block_dates(
    payload: BlockRequest,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    result = CalendarService(db, tenant).block_range(
        payload.property_id,
        payload.start_date,
        payload.end_date,
        reason=payload.reason,
        status=payload.status.value,
    )
    return BlockResponse(
        property_id=result.property_id,
        blocked=result.blocked,
        rejected=result.rejected,
        rejected_dates=result.rejected_dates,
    )


@router.post("/availability/unblock", response_model=UnblockResponse)
async def unblock_dates(
    payload: UnblockRequest,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    count = CalendarService(db, tenant).unblock_range(
        payload.property_id,
        payload.start_date,
        payload.end_date,
        status=payload.status.value,
    )
    return UnblockResponse(property_id=payload.property_id, unblocked=count)


@router.get("/calendar", response_model=CalendarResponse)
async def get_calendar(
    start_date: date,
    end_date: date,
    property_id: Optional[str] = None,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    entries = CalendarService(db, tenant).get_calendar(start_date, end_date, property_id=property_id)
    return CalendarResponse(start_date=start_date, end_date=end_date, entries=entries)
