"""
Availability Ledger Model

One row per (tenant, property, date) for every night that is NOT plainly
available. A missing row means "available". This table is the source of
truth for occupancy; its unique constraint is what keeps two
reservations from claiming the same night.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    MAINTENANCE = "maintenance"


# Statuses an operator may place (and later lift) on a date
HOLD_STATUSES = (AvailabilityStatus.BLOCKED.value, AvailabilityStatus.MAINTENANCE.value)

# Any stored status other than "available" makes the night unsellable
OCCUPIED_STATUSES = (
    AvailabilityStatus.BOOKED.value,
    AvailabilityStatus.BLOCKED.value,
    AvailabilityStatus.MAINTENANCE.value,
)


class AvailabilityRecord(Base):
    __tablename__ = "availability"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant = Column(String(64), nullable=False)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)

    # Calendar date, no time component
    date = Column(Date, nullable=False)

    status = Column(String(20), nullable=False, default=AvailabilityStatus.BOOKED.value)

    # Owning reservation when booked
    reservation_id = Column(String(36), ForeignKey("reservations.id"), nullable=True)

    price_override = Column(Numeric(10, 2), nullable=True)
    note = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    rental_property = relationship("Property")
    reservation = relationship("Reservation", back_populates="ledger_entries")

    __table_args__ = (
        # One entry per property per date
        UniqueConstraint("tenant", "property_id", "date", name="uq_availability_tenant_property_date"),
        Index("ix_availability_property_status", "tenant", "property_id", "status"),
        Index("ix_availability_date_status", "tenant", "date", "status"),
    )

    def __repr__(self):
        return f"<AvailabilityRecord {self.property_id} {self.date} {self.status}>"
