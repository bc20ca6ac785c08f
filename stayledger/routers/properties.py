import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from ..config import settings
from ..database import get_db
from ..errors import NotFoundError, ValidationError
from ..models.property import Property, PropertyStatus, slugify
from ..schemas.pagination import PaginatedResponse, paginate_query
from ..schemas.property import PropertyCreate, PropertyUpdate, PropertyResponse
from ..services.reservation_lifecycle import Actor
from ..utils.dependencies import get_tenant, require_operator
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/hotel/properties", tags=["Properties"])


def get_property_or_404(db: Session, tenant: str, property_id: str) -> Property:
    rental_property = db.query(Property).filter(
        Property.id == property_id,
        Property.tenant == tenant,
    ).first()
    if not rental_property:
        raise NotFoundError("Property", property_id)
    return rental_property


@router.get("", response_model=PaginatedResponse[PropertyResponse])
@router.get("/", response_model=PaginatedResponse[PropertyResponse])
async def list_properties(
    property_type: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant)
):
    """List properties of the tenant"""
    query = db.query(Property).filter(Property.tenant == tenant)
    if not include_inactive:
        query = query.filter(Property.is_active == True)  # noqa: E712
    if property_type:
        query = query.filter(Property.property_type == property_type)
    if status_filter:
        query = query.filter(Property.status == status_filter)

    items, total = paginate_query(query.order_by(Property.sort_order, Property.name), page, page_size)
    return PaginatedResponse.create(
        items=[PropertyResponse.model_validate(p) for p in items],
        total=total, page=page, page_size=page_size
    )


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant)
):
    return get_property_or_404(db, tenant, property_id)


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    data = payload.model_dump(mode="json")
    data["base_price"] = payload.base_price
    data["currency"] = payload.currency or settings.default_currency

    rental_property = Property(tenant=tenant, slug=slugify(payload.name), **data)
    db.add(rental_property)
    db.commit()
    db.refresh(rental_property)

    logger.log_with_context(
        logging.INFO, f"Property created: {rental_property.property_code}",
        entity_type="property", entity_id=rental_property.id, actor=actor.id
    )
    return rental_property


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    rental_property = get_property_or_404(db, tenant, property_id)

    changes = payload.model_dump(exclude_unset=True, mode="json")
    min_stay = changes.get("min_stay", rental_property.min_stay)
    max_stay = changes.get("max_stay", rental_property.max_stay)
    if max_stay < min_stay:
        raise ValidationError("max_stay must be greater than or equal to min_stay", field="max_stay")
    if "base_price" in changes:
        changes["base_price"] = payload.base_price
    for key, value in changes.items():
        setattr(rental_property, key, value)
    if "name" in changes:
        rental_property.slug = slugify(rental_property.name)

    rental_property.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(rental_property)
    return rental_property


@router.delete("/{property_id}", response_model=PropertyResponse)
async def retire_property(
    property_id: str,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    """Soft delete: the property stops being bookable, history stays intact"""
    rental_property = get_property_or_404(db, tenant, property_id)
    rental_property.is_active = False
    rental_property.status = PropertyStatus.RETIRED.value
    rental_property.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(rental_property)

    logger.info(f"Property retired: {rental_property.property_code} by {actor.id}")
    return rental_property
