"""
Reservation Lifecycle Service

Applies status changes to existing reservations:

    pending    -> confirmed | cancelled | no_show
    confirmed  -> checked_in | cancelled | no_show
    checked_in -> checked_out | cancelled

checked_out, cancelled and no_show are terminal. Cancelling releases the
reservation's own ledger nights (for a checked-in stay, only the nights
from today on); nothing else touches the ledger.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..errors import AuthorizationError, InvalidTransitionError, NotFoundError, ValidationError
from ..models.property import CancellationPolicy, Property
from ..models.reservation import Reservation, ReservationStatus, ReservationStatusHistory
from ..utils.db_helpers import acquire_row_lock, translate_storage_errors
from ..utils.logging_config import get_logger
from .availability_ledger import AvailabilityLedger, date_range
from .clock import Clock, SystemClock
from .rate_engine import quantize_money

logger = get_logger(__name__)

S = ReservationStatus

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    S.PENDING.value: frozenset({S.CONFIRMED.value, S.CANCELLED.value, S.NO_SHOW.value}),
    S.CONFIRMED.value: frozenset({S.CHECKED_IN.value, S.CANCELLED.value, S.NO_SHOW.value}),
    S.CHECKED_IN.value: frozenset({S.CHECKED_OUT.value, S.CANCELLED.value}),
    S.CHECKED_OUT.value: frozenset(),
    S.CANCELLED.value: frozenset(),
    S.NO_SHOW.value: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

SYSTEM_ROLE = "system"


def normalize_ref(reservation_ref: str) -> str:
    return (reservation_ref or "").strip().upper()


@dataclass
class Actor:
    """Caller identity as resolved by the upstream gateway."""
    id: str
    role: str = "guest"
    is_operator: bool = False

    @classmethod
    def from_role(cls, actor_id: str, role: Optional[str], operator_roles: Iterable[str]) -> "Actor":
        role = (role or "guest").strip().lower()
        return cls(id=actor_id, role=role, is_operator=role in set(operator_roles))

    @property
    def is_system(self) -> bool:
        return self.role == SYSTEM_ROLE


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def authorize_transition(reservation: Reservation, target: str, actor: Actor) -> None:
    """Raise AuthorizationError unless actor may move the reservation to target."""
    if actor.is_operator:
        return
    if target == S.CANCELLED.value and actor.id == reservation.guest_id:
        return
    if target == S.CONFIRMED.value and actor.is_system:
        return
    raise AuthorizationError(f"Not allowed to set reservation status to '{target}'")


class ReservationLifecycleManager:
    """
    Reads and transitions reservations of one tenant.

    Each update_status() call is its own unit of work: the reservation row
    is locked (PostgreSQL), the transition, ledger release and history
    entry are written together and committed once.
    """

    def __init__(
        self,
        db: Session,
        tenant: str,
        clock: Optional[Clock] = None,
        operator_roles: Optional[Iterable[str]] = None
    ):
        self.db = db
        self.tenant = tenant
        self.clock = clock or SystemClock()
        self.operator_roles = frozenset(operator_roles or ())
        self.ledger = AvailabilityLedger(db, tenant)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_ref(self, reservation_ref: str) -> Reservation:
        reservation_ref = normalize_ref(reservation_ref)
        reservation = self.db.query(Reservation).filter(
            Reservation.tenant == self.tenant,
            Reservation.reservation_ref == reservation_ref,
        ).first()
        if not reservation:
            raise NotFoundError("Reservation", reservation_ref)
        return reservation

    def get_for_actor(self, reservation_ref: str, actor: Actor) -> Reservation:
        """Owner guest or operator only."""
        reservation = self.get_by_ref(reservation_ref)
        if not actor.is_operator and reservation.guest_id != actor.id:
            raise AuthorizationError("Not allowed to view this reservation")
        return reservation

    def list_for_guest(self, guest_id: str, page: int = 1, page_size: int = 20) -> Tuple[List[Reservation], int]:
        query = self.db.query(Reservation).filter(
            Reservation.tenant == self.tenant,
            Reservation.guest_id == guest_id,
        )
        total = query.count()
        items = query.order_by(Reservation.check_in.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def list_reservations(
        self,
        status: Optional[str] = None,
        property_id: Optional[str] = None,
        check_in_from=None,
        check_in_to=None,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[Reservation], int]:
        """Operator listing with optional filters"""
        query = self.db.query(Reservation).filter(Reservation.tenant == self.tenant)

        if status:
            query = query.filter(Reservation.status == status)
        if property_id:
            query = query.filter(Reservation.property_id == property_id)
        if check_in_from:
            query = query.filter(Reservation.check_in >= check_in_from)
        if check_in_to:
            query = query.filter(Reservation.check_in <= check_in_to)

        total = query.count()
        items = query.order_by(
            Reservation.check_in, Reservation.created_at
        ).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def update_status(
        self,
        reservation_ref: str,
        target_status: str,
        actor: Actor,
        note: Optional[str] = None,
        refund_amount: Optional[Decimal] = None
    ) -> Reservation:
        """
        Move a reservation to target_status.

        Raises:
            NotFoundError: unknown reference
            AuthorizationError: actor may not request this change
            InvalidTransitionError: change not allowed from the current status
        """
        if target_status not in TRANSITIONS:
            raise ValidationError(f"Unknown reservation status: {target_status}", field="status")
        reservation_ref = normalize_ref(reservation_ref)

        with translate_storage_errors(self.db):
            reservation = acquire_row_lock(
                self.db,
                Reservation,
                (Reservation.tenant == self.tenant) & (Reservation.reservation_ref == reservation_ref),
            )
            if not reservation:
                raise NotFoundError("Reservation", reservation_ref)

            authorize_transition(reservation, target_status, actor)

            old_status = reservation.status
            if not can_transition(old_status, target_status):
                raise InvalidTransitionError(old_status, target_status)

            now = self.clock.now().replace(tzinfo=None)

            if target_status == S.CANCELLED.value:
                self._cancel(reservation, actor, note, refund_amount, now)

            reservation.status = target_status
            reservation.updated_at = now
            reservation.status_history.append(ReservationStatusHistory(
                sequence=len(reservation.status_history) + 1,
                status=target_status,
                timestamp=now,
                note=note,
                actor_id=actor.id,
            ))

            self.db.commit()

        self.db.refresh(reservation)
        logger.reservation_status_changed(reservation.reservation_ref, old_status, target_status)
        return reservation

    def _cancel(
        self,
        reservation: Reservation,
        actor: Actor,
        note: Optional[str],
        refund_amount: Optional[Decimal],
        now
    ) -> None:
        rental_property = self.db.query(Property).filter(Property.id == reservation.property_id).first()
        policy = rental_property.cancellation_policy if rental_property else CancellationPolicy.MODERATE.value

        refund = quantize_money(Decimal(str(refund_amount or 0)))
        if refund < 0:
            raise ValidationError("Refund amount cannot be negative", field="refund_amount")

        nights = date_range(reservation.check_in, reservation.check_out)
        if reservation.status == S.CHECKED_IN.value:
            # Nights already stayed stay booked
            today = self.clock.today()
            nights = [night for night in nights if night >= today]
        released = self.ledger.release(reservation.property_id, nights, reservation.id)

        reservation.cancellation = {
            "policy": policy,
            "refund_amount": str(refund),
            "cancelled_at": now.isoformat(),
            "cancelled_by": actor.id,
            "reason": note or "Guest cancelled",
        }
        logger.info(f"Cancelled {reservation.reservation_ref}: released {released} dates")
