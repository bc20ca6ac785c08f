"""
Rate Plan API Router

Endpoints:
- GET    /api/hotel/rate-plans          - List rate plans (operator)
- GET    /api/hotel/rate-plans/quote    - Price a stay without booking it
- GET    /api/hotel/rate-plans/{id}     - Get one plan
- POST   /api/hotel/rate-plans          - Create plan
- PUT    /api/hotel/rate-plans/{id}     - Update plan
- DELETE /api/hotel/rate-plans/{id}     - Delete plan
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFoundError, ValidationError
from ..models.rate_plan import RatePlan
from ..schemas.rate_plan import (
    RatePlanCreate, RatePlanUpdate, RatePlanResponse, QuoteResponse, NightPriceResponse
)
from ..services.availability_ledger import date_range
from ..services.rate_engine import RateEngine
from ..services.reservation_lifecycle import Actor
from ..utils.dependencies import get_tenant, require_operator
from ..utils.logging_config import get_logger
from .properties import get_property_or_404

logger = get_logger(__name__)

router = APIRouter(prefix="/api/hotel/rate-plans", tags=["Rate Plans"])


def get_plan_or_404(db: Session, tenant: str, plan_id: str) -> RatePlan:
    plan = db.query(RatePlan).filter(RatePlan.id == plan_id, RatePlan.tenant == tenant).first()
    if not plan:
        raise NotFoundError("Rate plan", plan_id)
    return plan


@router.get("", response_model=List[RatePlanResponse])
@router.get("/", response_model=List[RatePlanResponse])
async def list_rate_plans(
    property_id: Optional[str] = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    query = db.query(RatePlan).filter(RatePlan.tenant == tenant)
    if property_id:
        query = query.filter(RatePlan.property_id == property_id)
    if active_only:
        query = query.filter(RatePlan.is_active == True)  # noqa: E712
    return query.order_by(RatePlan.start_date, RatePlan.priority.desc()).all()


@router.get("/quote", response_model=QuoteResponse)
async def quote_stay(
    property_id: str,
    check_in: date,
    check_out: date,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant)
):
    """Nightly breakdown and subtotal for [check_in, check_out)"""
    if check_out <= check_in:
        raise ValidationError("Check-out must be after check-in", field="check_out")
    rental_property = get_property_or_404(db, tenant, property_id)

    quote = RateEngine(db, tenant).price_stay(rental_property, date_range(check_in, check_out))
    return QuoteResponse(
        property_id=rental_property.id,
        check_in=check_in,
        check_out=check_out,
        nights=len(quote.nights),
        currency=quote.currency,
        subtotal=quote.subtotal,
        nightly_breakdown=[
            NightPriceResponse(
                date=n.date, base_price=n.base_price, price=n.price, rate_plan=n.rate_plan_name
            )
            for n in quote.nights
        ],
    )


@router.get("/{plan_id}", response_model=RatePlanResponse)
async def get_rate_plan(
    plan_id: str,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    return get_plan_or_404(db, tenant, plan_id)


@router.post("", response_model=RatePlanResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=RatePlanResponse, status_code=status.HTTP_201_CREATED)
async def create_rate_plan(
    payload: RatePlanCreate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    rental_property = get_property_or_404(db, tenant, payload.property_id)

    plan = RatePlan(
        tenant=tenant,
        property_id=rental_property.id,
        name=payload.name,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        price_per_night=payload.price_per_night,
        currency=rental_property.currency,
        day_modifiers=[m.model_dump(mode="json") for m in payload.day_modifiers],
        min_stay=payload.min_stay,
        priority=payload.priority,
        is_active=payload.is_active,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)

    logger.info(f"Rate plan '{plan.name}' created for property {rental_property.id} by {actor.id}")
    return plan


@router.put("/{plan_id}", response_model=RatePlanResponse)
async def update_rate_plan(
    plan_id: str,
    payload: RatePlanUpdate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    plan = get_plan_or_404(db, tenant, plan_id)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("end_date", plan.end_date) < changes.get("start_date", plan.start_date):
        raise ValidationError("end_date must be on or after start_date", field="end_date")

    if "day_modifiers" in changes:
        changes["day_modifiers"] = [m.model_dump(mode="json") for m in payload.day_modifiers]
    for key, value in changes.items():
        setattr(plan, key, value)

    plan.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(plan)
    return plan


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rate_plan(
    plan_id: str,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    plan = get_plan_or_404(db, tenant, plan_id)
    db.delete(plan)
    db.commit()
    logger.info(f"Rate plan {plan_id} deleted by {actor.id}")
