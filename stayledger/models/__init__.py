# Models package
from .property import Property, PropertyType, PropertyStatus, CancellationPolicy
from .availability import AvailabilityRecord, AvailabilityStatus, HOLD_STATUSES, OCCUPIED_STATUSES
from .rate_plan import RatePlan
from .add_on import AddOn, AddOnBasis
from .reservation import (
    Reservation,
    ReservationStatusHistory,
    ReservationStatus,
    ReservationSource,
    PaymentStatus,
)

__all__ = [
    "Property", "PropertyType", "PropertyStatus", "CancellationPolicy",
    "AvailabilityRecord", "AvailabilityStatus", "HOLD_STATUSES", "OCCUPIED_STATUSES",
    "RatePlan",
    "AddOn", "AddOnBasis",
    "Reservation", "ReservationStatusHistory", "ReservationStatus", "ReservationSource",
    "PaymentStatus",
]
