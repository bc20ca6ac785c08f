from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from ..models.property import PropertyType, PropertyStatus, CancellationPolicy


class PropertyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    property_type: PropertyType = PropertyType.ROOM
    description: Optional[str] = Field(None, max_length=5000)
    amenities: List[str] = []
    tags: List[str] = []
    max_guests: int = Field(default=2, ge=1, le=50)
    beds: int = Field(default=1, ge=0)
    bathrooms: int = Field(default=1, ge=0)
    base_price: Decimal = Field(..., ge=0, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    min_stay: int = Field(default=1, ge=1)
    max_stay: int = Field(default=30, ge=1)
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"
    cancellation_policy: CancellationPolicy = CancellationPolicy.MODERATE
    sort_order: int = 0

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v

    @model_validator(mode='after')
    def validate_stay_bounds(self):
        if self.max_stay < self.min_stay:
            raise ValueError('max_stay must be greater than or equal to min_stay')
        return self


class PropertyCreate(PropertyBase):
    pass


class PropertyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    property_type: Optional[PropertyType] = None
    description: Optional[str] = Field(None, max_length=5000)
    amenities: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    max_guests: Optional[int] = Field(None, ge=1, le=50)
    beds: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    base_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    status: Optional[PropertyStatus] = None
    min_stay: Optional[int] = Field(None, ge=1)
    max_stay: Optional[int] = Field(None, ge=1)
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    cancellation_policy: Optional[CancellationPolicy] = None
    sort_order: Optional[int] = None

    @field_validator(
        'name', 'property_type', 'amenities', 'tags', 'max_guests', 'beds', 'bathrooms',
        'base_price', 'status', 'min_stay', 'max_stay', 'check_in_time', 'check_out_time',
        'cancellation_policy', 'sort_order'
    )
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    @model_validator(mode='after')
    def validate_stay_bounds(self):
        if self.min_stay is not None and self.max_stay is not None and self.max_stay < self.min_stay:
            raise ValueError('max_stay must be greater than or equal to min_stay')
        return self


class PropertyResponse(BaseModel):
    id: str
    property_code: str
    name: str
    slug: str
    property_type: str
    description: Optional[str] = None
    amenities: List[str] = []
    tags: List[str] = []
    max_guests: int
    beds: int
    bathrooms: int
    base_price: Decimal
    currency: str
    status: str
    min_stay: int
    max_stay: Optional[int] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    cancellation_policy: str
    sort_order: int = 0
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
