"""
Rate Plan Schemas

Pydantic models for rate plan CRUD and stay quotes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator


class DayModifier(BaseModel):
    """Percentage adjustment for one weekday (0=Sunday ... 6=Saturday)"""
    day: int = Field(..., ge=0, le=6)
    modifier: Decimal = Field(..., ge=-100, le=500)


def _unique_days(modifiers: Optional[List[DayModifier]]):
    if modifiers:
        days = [m.day for m in modifiers]
        if len(days) != len(set(days)):
            raise ValueError("day_modifiers may list each weekday only once")
    return modifiers


class RatePlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    start_date: date
    end_date: date
    price_per_night: Decimal = Field(..., ge=0, decimal_places=2)
    day_modifiers: List[DayModifier] = []
    min_stay: int = Field(default=1, ge=1)
    priority: int = Field(default=0, description="Higher wins when plans overlap")
    is_active: bool = True

    @field_validator('day_modifiers')
    @classmethod
    def validate_day_modifiers(cls, v):
        return _unique_days(v)

    @model_validator(mode='after')
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must be on or after start_date')
        return self


class RatePlanCreate(RatePlanBase):
    property_id: str = Field(..., min_length=1)


class RatePlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    price_per_night: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    day_modifiers: Optional[List[DayModifier]] = None
    min_stay: Optional[int] = Field(None, ge=1)
    priority: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator(
        'name', 'start_date', 'end_date', 'price_per_night', 'day_modifiers',
        'min_stay', 'priority', 'is_active'
    )
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    @field_validator('day_modifiers')
    @classmethod
    def validate_day_modifiers(cls, v):
        return _unique_days(v)


class RatePlanResponse(RatePlanBase):
    id: str
    property_id: str
    currency: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NightPriceResponse(BaseModel):
    date: date
    base_price: Decimal
    price: Decimal
    rate_plan: Optional[str] = None


class QuoteResponse(BaseModel):
    """Price of a stay without booking it"""
    property_id: str
    check_in: date
    check_out: date
    nights: int
    currency: str
    subtotal: Decimal
    nightly_breakdown: List[NightPriceResponse]
