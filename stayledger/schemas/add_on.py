from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from ..models.add_on import AddOnBasis


class AddOnBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    per: AddOnBasis = AddOnBasis.STAY
    category: Optional[str] = Field(None, max_length=50)
    sort_order: int = 0

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v


class AddOnCreate(AddOnBase):
    pass


class AddOnUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    per: Optional[AddOnBasis] = None
    category: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class AddOnResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    currency: str
    per: str
    category: Optional[str] = None
    is_active: bool
    sort_order: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
