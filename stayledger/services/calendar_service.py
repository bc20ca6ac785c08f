"""
Calendar Service

Operator view over the availability ledger:
1. Block / unblock inclusive date ranges of a property
2. Calendar listing joining ledger records, property metadata and the
   reservations that own booked nights

Blocking never overrides a booked night; such dates are reported back
as rejected while the rest of the range is held.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models.availability import AvailabilityRecord, AvailabilityStatus
from ..models.property import Property
from ..models.reservation import Reservation
from ..utils.db_helpers import translate_storage_errors
from ..utils.logging_config import get_logger
from .availability_ledger import AvailabilityLedger, inclusive_date_range

logger = get_logger(__name__)

MAX_RANGE_DAYS = 366


@dataclass
class BlockResult:
    property_id: str
    blocked: int
    rejected_dates: List[date] = field(default_factory=list)

    @property
    def rejected(self) -> int:
        return len(self.rejected_dates)


class CalendarService:
    """Block/unblock and calendar listing for one tenant"""

    def __init__(self, db: Session, tenant: str):
        self.db = db
        self.tenant = tenant
        self.ledger = AvailabilityLedger(db, tenant)

    def _get_property(self, property_id: str) -> Property:
        rental_property = self.db.query(Property).filter(
            Property.id == property_id,
            Property.tenant == self.tenant,
        ).first()
        if not rental_property:
            raise NotFoundError("Property", property_id)
        return rental_property

    @staticmethod
    def _validate_range(start: date, end: date) -> List[date]:
        if end < start:
            raise ValidationError("End date must be on or after start date", field="end_date")
        dates = inclusive_date_range(start, end)
        if len(dates) > MAX_RANGE_DAYS:
            raise ValidationError(f"Date range cannot exceed {MAX_RANGE_DAYS} days", field="end_date")
        return dates

    def block_range(
        self,
        property_id: str,
        start: date,
        end: date,
        reason: Optional[str] = None,
        status: str = AvailabilityStatus.BLOCKED.value
    ) -> BlockResult:
        """Hold every free night of [start, end]; booked nights are rejected."""
        dates = self._validate_range(start, end)
        rental_property = self._get_property(property_id)

        with translate_storage_errors(self.db):
            held, rejected = self.ledger.block(rental_property.id, dates, note=reason, status=status)
            self.db.commit()

        logger.dates_blocked(rental_property.id, len(held), len(rejected), reason)
        return BlockResult(property_id=rental_property.id, blocked=len(held), rejected_dates=rejected)

    def unblock_range(
        self,
        property_id: str,
        start: date,
        end: date,
        status: str = AvailabilityStatus.BLOCKED.value
    ) -> int:
        """Lift holds of the given status on [start, end]. Returns rows removed."""
        dates = self._validate_range(start, end)
        rental_property = self._get_property(property_id)

        with translate_storage_errors(self.db):
            count = self.ledger.unblock(rental_property.id, dates, status=status)
            self.db.commit()
        return count

    def get_calendar(
        self,
        start: date,
        end: date,
        property_id: Optional[str] = None
    ) -> List[dict]:
        """
        Ledger entries on [start, end], optionally for a single property.

        Read-only; dates without a record are available and omitted.
        """
        self._validate_range(start, end)

        query = self.db.query(AvailabilityRecord, Property).join(
            Property, AvailabilityRecord.property_id == Property.id
        ).filter(
            AvailabilityRecord.tenant == self.tenant,
            AvailabilityRecord.date >= start,
            AvailabilityRecord.date <= end,
        )
        if property_id:
            query = query.filter(AvailabilityRecord.property_id == property_id)

        rows = query.order_by(Property.sort_order, Property.name, AvailabilityRecord.date).all()

        reservation_ids = {r.reservation_id for r, _ in rows if r.reservation_id}
        reservations: Dict[str, Reservation] = {}
        if reservation_ids:
            reservations = {
                res.id: res for res in self.db.query(Reservation).filter(
                    Reservation.id.in_(reservation_ids)
                ).all()
            }

        entries = []
        for record, rental_property in rows:
            entry = {
                "date": record.date,
                "status": record.status,
                "note": record.note,
                "property": {
                    "id": rental_property.id,
                    "name": rental_property.name,
                    "property_code": rental_property.property_code,
                    "property_type": rental_property.property_type,
                },
                "reservation": None,
            }
            reservation = reservations.get(record.reservation_id)
            if reservation:
                entry["reservation"] = {
                    "id": reservation.id,
                    "reservation_ref": reservation.reservation_ref,
                    "guest_id": reservation.guest_id,
                    "check_in": reservation.check_in,
                    "check_out": reservation.check_out,
                    "status": reservation.status,
                    "guests": reservation.guest_count,
                }
            entries.append(entry)
        return entries
