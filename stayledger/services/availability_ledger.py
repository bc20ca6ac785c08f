"""
Availability Ledger Service

Manages the per-night occupancy ledger of properties.

Key responsibilities:
- Conflict lookups over a date range
- Claiming nights for a reservation (all-or-nothing)
- Releasing nights owned by a reservation
- Operator holds (block/unblock)

Nothing here commits: callers own the unit of work. The exception is a
failed claim or block, which rolls the session back so no partial batch
survives.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConflictError
from ..models.availability import AvailabilityRecord, AvailabilityStatus, HOLD_STATUSES, OCCUPIED_STATUSES
from ..utils.db_helpers import is_unique_violation
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


def date_range(start: date, end: date) -> List[date]:
    """Dates from start (inclusive) to end (exclusive)."""
    dates = []
    current = start
    while current < end:
        dates.append(current)
        current += timedelta(days=1)
    return dates


def inclusive_date_range(start: date, end: date) -> List[date]:
    """Dates from start to end, both inclusive."""
    return date_range(start, end + timedelta(days=1))


class AvailabilityLedger:
    """
    Ledger of non-available nights for one tenant.

    Uniqueness of (tenant, property_id, date) is enforced by the database;
    claim() relies on it as the final authority when two writers race past
    the conflict pre-check.
    """

    def __init__(self, db: Session, tenant: str):
        self.db = db
        self.tenant = tenant

    def _base_query(self, property_id: str):
        return self.db.query(AvailabilityRecord).filter(
            AvailabilityRecord.tenant == self.tenant,
            AvailabilityRecord.property_id == property_id,
        )

    def query_range(self, property_id: str, start: date, end: date) -> List[AvailabilityRecord]:
        """All stored (non-available) records in the half-open range [start, end)."""
        return self._base_query(property_id).filter(
            AvailabilityRecord.date >= start,
            AvailabilityRecord.date < end,
            AvailabilityRecord.status.in_(OCCUPIED_STATUSES),
        ).order_by(AvailabilityRecord.date).all()

    def records_for_dates(self, property_id: str, dates: Iterable[date]) -> List[AvailabilityRecord]:
        dates = list(dates)
        if not dates:
            return []
        return self._base_query(property_id).filter(
            AvailabilityRecord.date.in_(dates)
        ).order_by(AvailabilityRecord.date).all()

    def claim(self, property_id: str, dates: List[date], reservation_id: str) -> List[AvailabilityRecord]:
        """
        Insert a `booked` record for every date, owned by reservation_id.

        All-or-nothing: if any date already has a record (of any status,
        including one inserted by a concurrent writer after our pre-check)
        the session is rolled back and ConflictError is raised. Existing
        records are never overwritten.
        """
        existing = self.records_for_dates(property_id, dates)
        if existing:
            taken = [r.date for r in existing]
            logger.claim_conflict(property_id, taken)
            raise ConflictError(dates=taken)

        records = [
            AvailabilityRecord(
                tenant=self.tenant,
                property_id=property_id,
                date=d,
                status=AvailabilityStatus.BOOKED.value,
                reservation_id=reservation_id,
            )
            for d in dates
        ]
        self.db.add_all(records)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if not is_unique_violation(e):
                raise
            logger.claim_conflict(property_id, dates)
            raise ConflictError(dates=dates) from e

        logger.info(f"Claimed {len(records)} dates for property {property_id}, reservation {reservation_id}")
        return records

    def release(self, property_id: str, dates: List[date], reservation_id: str) -> int:
        """
        Delete `booked` records owned by reservation_id.
        Records owned by any other reservation are never touched.
        """
        if not dates:
            return 0
        count = self._base_query(property_id).filter(
            AvailabilityRecord.date.in_(dates),
            AvailabilityRecord.reservation_id == reservation_id,
            AvailabilityRecord.status == AvailabilityStatus.BOOKED.value,
        ).delete(synchronize_session=False)

        logger.info(f"Released {count} dates for property {property_id}, reservation {reservation_id}")
        return count

    def reconcile(self, reservation_id: str) -> int:
        """Remove any ledger rows still pointing at a reservation that never committed."""
        count = self.db.query(AvailabilityRecord).filter(
            AvailabilityRecord.tenant == self.tenant,
            AvailabilityRecord.reservation_id == reservation_id,
        ).delete(synchronize_session=False)
        if count:
            logger.warning(f"Reconciled {count} orphaned ledger rows for reservation {reservation_id}")
        return count

    def block(
        self,
        property_id: str,
        dates: List[date],
        note: Optional[str] = None,
        status: str = AvailabilityStatus.BLOCKED.value
    ) -> Tuple[List[date], List[date]]:
        """
        Place an operator hold on every free date.

        Dates already held are updated with the new note/status. Booked
        dates are rejected and left untouched.

        Returns (held_dates, rejected_dates).
        """
        if status not in HOLD_STATUSES:
            raise ValueError(f"Cannot block with status {status!r}")

        existing = {r.date: r for r in self.records_for_dates(property_id, dates)}
        held: List[date] = []
        rejected: List[date] = []

        for d in dates:
            entry = existing.get(d)
            if entry is None:
                self.db.add(AvailabilityRecord(
                    tenant=self.tenant,
                    property_id=property_id,
                    date=d,
                    status=status,
                    note=note,
                ))
                held.append(d)
            elif entry.status in HOLD_STATUSES:
                entry.status = status
                entry.note = note
                held.append(d)
            else:
                # Don't override bookings
                rejected.append(d)

        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if not is_unique_violation(e):
                raise
            raise ConflictError("Calendar changed while blocking dates, retry the request") from e

        return held, rejected

    def unblock(
        self,
        property_id: str,
        dates: List[date],
        status: str = AvailabilityStatus.BLOCKED.value
    ) -> int:
        """Delete hold records of the given status. Booked records are never removed."""
        if status not in HOLD_STATUSES:
            raise ValueError(f"Cannot unblock status {status!r}")
        if not dates:
            return 0
        count = self._base_query(property_id).filter(
            AvailabilityRecord.date.in_(dates),
            AvailabilityRecord.status == status,
        ).delete(synchronize_session=False)

        logger.info(f"Unblocked {count} dates for property {property_id}")
        return count
