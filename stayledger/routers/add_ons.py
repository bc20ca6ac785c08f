from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import NotFoundError
from ..models.add_on import AddOn
from ..schemas.add_on import AddOnCreate, AddOnUpdate, AddOnResponse
from ..services.reservation_lifecycle import Actor
from ..utils.dependencies import get_tenant, require_operator

router = APIRouter(prefix="/api/hotel/add-ons", tags=["Add-ons"])


def get_add_on_or_404(db: Session, tenant: str, add_on_id: str) -> AddOn:
    add_on = db.query(AddOn).filter(AddOn.id == add_on_id, AddOn.tenant == tenant).first()
    if not add_on:
        raise NotFoundError("Add-on", add_on_id)
    return add_on


@router.get("", response_model=List[AddOnResponse])
@router.get("/", response_model=List[AddOnResponse])
async def list_add_ons(
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant)
):
    """Active catalog entries"""
    query = db.query(AddOn).filter(AddOn.tenant == tenant, AddOn.is_active == True)  # noqa: E712
    if category:
        query = query.filter(AddOn.category == category)
    return query.order_by(AddOn.sort_order, AddOn.name).all()


@router.get("/{add_on_id}", response_model=AddOnResponse)
async def get_add_on(
    add_on_id: str,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant)
):
    return get_add_on_or_404(db, tenant, add_on_id)


@router.post("", response_model=AddOnResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=AddOnResponse, status_code=status.HTTP_201_CREATED)
async def create_add_on(
    payload: AddOnCreate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    add_on = AddOn(
        tenant=tenant,
        name=payload.name,
        description=payload.description,
        price=payload.price,
        currency=payload.currency or settings.default_currency,
        per=payload.per.value,
        category=payload.category,
        sort_order=payload.sort_order,
    )
    db.add(add_on)
    db.commit()
    db.refresh(add_on)
    return add_on


@router.put("/{add_on_id}", response_model=AddOnResponse)
async def update_add_on(
    add_on_id: str,
    payload: AddOnUpdate,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    add_on = get_add_on_or_404(db, tenant, add_on_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("per") is not None:
        changes["per"] = payload.per.value
    for key, value in changes.items():
        setattr(add_on, key, value)
    add_on.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(add_on)
    return add_on


@router.delete("/{add_on_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_add_on(
    add_on_id: str,
    db: Session = Depends(get_db),
    tenant: str = Depends(get_tenant),
    actor: Actor = Depends(require_operator)
):
    """Deactivate; existing reservations keep their frozen add-on lines"""
    add_on = get_add_on_or_404(db, tenant, add_on_id)
    add_on.is_active = False
    add_on.updated_at = datetime.utcnow()
    db.commit()
