import enum
import secrets
import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class ReservationSource(str, enum.Enum):
    """The channel the reservation came from"""
    DIRECT = "direct"
    BOOKING_COM = "booking_com"
    AIRBNB = "airbnb"
    EXPEDIA = "expedia"
    MANUAL = "manual"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"


def generate_reservation_ref() -> str:
    return "RES-" + secrets.token_hex(4).upper()


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant = Column(String(64), nullable=False)
    reservation_ref = Column(String(20), nullable=False, unique=True, default=generate_reservation_ref)

    property_id = Column(String(36), ForeignKey("properties.id"), nullable=False)
    guest_id = Column(String(64), nullable=False)

    # Half-open stay [check_in, check_out)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    nights = Column(Integer, nullable=False)

    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    infants = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)
    source = Column(String(20), default=ReservationSource.DIRECT.value)

    # Snapshots frozen at creation (money values stored as decimal strings)
    pricing = Column(JSON, nullable=False)
    payment = Column(JSON, nullable=False)
    cancellation = Column(JSON, nullable=True)

    special_requests = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    rental_property = relationship("Property", back_populates="reservations")
    status_history = relationship(
        "ReservationStatusHistory",
        back_populates="reservation",
        order_by="ReservationStatusHistory.sequence",
        cascade="all, delete-orphan",
    )
    ledger_entries = relationship("AvailabilityRecord", back_populates="reservation")

    __table_args__ = (
        Index("ix_reservation_property_dates", "tenant", "property_id", "check_in", "check_out"),
        Index("ix_reservation_guest_status", "tenant", "guest_id", "status"),
        Index("ix_reservation_status_check_in", "tenant", "status", "check_in"),
    )

    @property
    def guest_count(self) -> int:
        return (self.adults or 0) + (self.children or 0)

    def __repr__(self):
        return f"<Reservation {self.reservation_ref} {self.check_in}..{self.check_out} {self.status}>"


class ReservationStatusHistory(Base):
    """Append-only log of status changes"""
    __tablename__ = "reservation_status_history"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    reservation_id = Column(String(36), ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False)
    sequence = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    note = Column(Text, nullable=True)
    actor_id = Column(String(64), nullable=True)

    reservation = relationship("Reservation", back_populates="status_history")

    __table_args__ = (
        Index("ix_status_history_reservation", "reservation_id", "sequence"),
    )
