"""
Property Model

A bookable unit (room, suite, cabin...). Properties are soft-retired by
flipping status/is_active, never hard-deleted while reservations point
at them.
"""

import enum
import re
import secrets
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, DateTime, Index, Integer, JSON, Numeric, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from ..database import Base


class PropertyType(str, enum.Enum):
    ROOM = "room"
    SUITE = "suite"
    APARTMENT = "apartment"
    COTTAGE = "cottage"
    CABIN = "cabin"
    VILLA = "villa"
    DORMITORY = "dormitory"


class PropertyStatus(str, enum.Enum):
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class CancellationPolicy(str, enum.Enum):
    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"
    NON_REFUNDABLE = "non-refundable"


def generate_property_code() -> str:
    return "PROP-" + secrets.token_hex(4).upper()


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{slug}-{secrets.token_hex(3)}"


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant = Column(String(64), nullable=False, index=True)
    property_code = Column(String(20), nullable=False, unique=True, default=generate_property_code)

    name = Column(String(200), nullable=False)
    slug = Column(String(255), nullable=False)
    property_type = Column(String(20), default=PropertyType.ROOM.value)
    description = Column(Text, nullable=True)
    amenities = Column(JSON, default=list)
    tags = Column(JSON, default=list)

    # Capacity
    max_guests = Column(Integer, nullable=False, default=2)
    beds = Column(Integer, nullable=False, default=1)
    bathrooms = Column(Integer, nullable=False, default=1)

    # Pricing
    base_price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="GBP")

    status = Column(String(20), default=PropertyStatus.AVAILABLE.value)

    # Stay policy
    min_stay = Column(Integer, default=1)
    max_stay = Column(Integer, default=30)
    check_in_time = Column(String(10), default="15:00")
    check_out_time = Column(String(10), default="11:00")
    cancellation_policy = Column(String(20), default=CancellationPolicy.MODERATE.value)

    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    rate_plans = relationship("RatePlan", back_populates="rental_property")
    reservations = relationship("Reservation", back_populates="rental_property")

    __table_args__ = (
        UniqueConstraint("tenant", "slug", name="uq_property_tenant_slug"),
        Index("ix_property_tenant_status", "tenant", "status", "is_active"),
    )

    def __repr__(self):
        return f"<Property {self.property_code} {self.name}>"
