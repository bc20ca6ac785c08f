"""
Reservations API Router

Endpoints:
- POST  /api/hotel/reservations              - Book a stay (pending)
- GET   /api/hotel/reservations/mine         - Caller's reservations
- GET   /api/hotel/reservations              - Operator listing with filters
- GET   /api/hotel/reservations/{ref}        - One reservation (owner or operator)
- PATCH /api/hotel/reservations/{ref}/status - Lifecycle transition
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models.reservation import ReservationStatus
from ..schemas.pagination import PaginatedResponse
from ..schemas.reservation import ReservationCreate, ReservationStatusUpdate, ReservationResponse
from ..services.booking_orchestrator import BookingOrchestrator, GuestCounts
from ..services.clock import Clock
from ..services.reservation_lifecycle import Actor, ReservationLifecycleManager
from ..utils.dependencies import get_actor, get_clock, get_tenant, require_operator
from ..utils.rate_limiter import limiter, get_rate_limit

router = APIRouter(prefix="/api/hotel/reservations", tags=["Reservations"])


def get_lifecycle(
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    clock: Clock = Depends(get_clock)
) -> ReservationLifecycleManager:
    return ReservationLifecycleManager(db, tenant, clock=clock, operator_roles=settings.operator_role_set)


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("reservation_create"))
async def create_reservation(
    request: Request,
    payload: ReservationCreate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(get_actor),
    clock: Clock = Depends(get_clock)
):
    """Price the stay, freeze the snapshot and claim the nights"""
    orchestrator = BookingOrchestrator(db, tenant, clock=clock, settings=settings)
    return orchestrator.create_reservation(
        property_id=payload.property_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        guest_id=actor.id,
        guests=GuestCounts(**payload.guests.model_dump()),
        add_on_ids=payload.add_on_ids,
        special_requests=payload.special_requests,
        source=payload.source.value,
    )


@router.get("/mine", response_model=PaginatedResponse[ReservationResponse])
async def my_reservations(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    lifecycle: ReservationLifecycleManager = Depends(get_lifecycle)
):
    items, total = lifecycle.list_for_guest(actor.id, page=page, page_size=page_size)
    return PaginatedResponse.create(
        items=[ReservationResponse.model_validate(r) for r in items],
        total=total, page=page, page_size=page_size
    )


@router.get("", response_model=PaginatedResponse[ReservationResponse])
@router.get("/", response_model=PaginatedResponse[ReservationResponse])
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    property_id: Optional[str] = None,
    check_in_from: Optional[date] = None,
    check_in_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_operator),
    lifecycle: ReservationLifecycleManager = Depends(get_lifecycle)
):
    items, total = lifecycle.list_reservations(
        status=status_filter.value if status_filter else None,
        property_id=property_id,
        check_in_from=check_in_from,
        check_in_to=check_in_to,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse.create(
        items=[ReservationResponse.model_validate(r) for r in items],
        total=total, page=page, page_size=page_size
    )


@router.get("/{reservation_ref}", response_model=ReservationResponse)
async def get_reservation(
    reservation_ref: str,
    actor: Actor = Depends(get_actor),
    lifecycle: ReservationLifecycleManager = Depends(get_lifecycle)
):
    return lifecycle.get_for_actor(reservation_ref, actor)


@router.patch("/{reservation_ref}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_ref: str,
    payload: ReservationStatusUpdate,
    actor: Actor = Depends(get_actor),
    lifecycle: ReservationLifecycleManager = Depends(get_lifecycle)
):
    return lifecycle.update_status(
        reservation_ref,
        payload.status.value,
        actor,
        note=payload.note,
        refund_amount=payload.refund_amount,
    )
