"""
Availability & Calendar Schemas
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from ..models.availability import AvailabilityStatus


class AvailableProperty(BaseModel):
    """One search hit"""
    property_id: str
    property_code: str
    name: str
    property_type: str
    max_guests: int
    nights: int
    currency: str
    subtotal: Decimal
    nightly_breakdown: List[dict]


class AvailabilityResponse(BaseModel):
    check_in: date
    check_out: date
    guests: Optional[int] = None
    properties: List[AvailableProperty]


class BlockRequest(BaseModel):
    """Inclusive range [start_date, end_date]"""
    property_id: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=500)
    status: AvailabilityStatus = AvailabilityStatus.BLOCKED

    @model_validator(mode='after')
    def validate_block(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must be on or after start_date')
        if self.status not in (AvailabilityStatus.BLOCKED, AvailabilityStatus.MAINTENANCE):
            raise ValueError('status must be blocked or maintenance')
        return self


class UnblockRequest(BaseModel):
    property_id: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    status: AvailabilityStatus = AvailabilityStatus.BLOCKED

    @model_validator(mode='after')
    def validate_unblock(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must be on or after start_date')
        if self.status not in (AvailabilityStatus.BLOCKED, AvailabilityStatus.MAINTENANCE):
            raise ValueError('status must be blocked or maintenance')
        return self


class BlockResponse(BaseModel):
    property_id: str
    blocked: int
    rejected: int
    rejected_dates: List[date] = []


class UnblockResponse(BaseModel):
    property_id: str
    unblocked: int


class CalendarProperty(BaseModel):
    id: str
    name: str
    property_code: str
    property_type: str


class CalendarReservation(BaseModel):
    id: str
    reservation_ref: str
    guest_id: str
    check_in: date
    check_out: date
    status: str
    guests: int


class CalendarEntry(BaseModel):
    date: date
    status: str
    note: Optional[str] = None
    property: CalendarProperty
    reservation: Optional[CalendarReservation] = None


class CalendarResponse(BaseModel):
    start_date: date
    end_date: date
    entries: List[CalendarEntry]
