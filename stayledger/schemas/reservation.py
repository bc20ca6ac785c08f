from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from decimal import Decimal
import re

from ..models.reservation import ReservationStatus, ReservationSource


def _strip_markup(v):
    """Remove script tags and inline event handlers from free text"""
    if isinstance(v, str):
        v = re.sub(r'<script[^>]*>.*?</script>', '', v, flags=re.IGNORECASE | re.DOTALL)
        v = re.sub(r'on\w+\s*=', '', v, flags=re.IGNORECASE)
    return v


class GuestCountsSchema(BaseModel):
    adults: int = Field(default=1, ge=1, le=50)
    children: int = Field(default=0, ge=0, le=50)
    infants: int = Field(default=0, ge=0, le=20)


class ReservationCreate(BaseModel):
    property_id: str = Field(..., min_length=1, max_length=100)
    check_in: date
    check_out: date
    guests: GuestCountsSchema = GuestCountsSchema()
    add_on_ids: List[str] = []
    special_requests: Optional[str] = Field(None, max_length=1000)
    source: ReservationSource = ReservationSource.DIRECT

    @field_validator('special_requests', mode='before')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _strip_markup(v)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.check_out <= self.check_in:
            raise ValueError('check_out must be after check_in')
        return self


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus
    note: Optional[str] = Field(None, max_length=1000)
    refund_amount: Optional[Decimal] = Field(None, ge=0)

    @field_validator('note', mode='before')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _strip_markup(v)


class StatusHistoryResponse(BaseModel):
    sequence: int
    status: str
    timestamp: datetime
    note: Optional[str] = None
    actor_id: Optional[str] = None

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    id: str
    reservation_ref: str
    property_id: str
    guest_id: str
    check_in: date
    check_out: date
    nights: int
    adults: int
    children: int
    infants: int
    status: str
    source: str
    pricing: Dict[str, Any]
    payment: Dict[str, Any]
    cancellation: Optional[Dict[str, Any]] = None
    special_requests: Optional[str] = None
    status_history: List[StatusHistoryResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
