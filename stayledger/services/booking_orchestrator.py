"""
Booking Orchestrator

Turns a stay request into a priced, conflict-free reservation:

1. validate dates, property, stay length and guest count
2. pre-check the availability ledger for the half-open range
3. price every night with the rate engine, then add-ons
4. freeze pricing and payment snapshots
5. persist the reservation (pending) and claim its nights in the same
   unit of work

The claim is the authority: a writer that raced past the pre-check gets a
ConflictError and its reservation is rolled back, never committed.
"""

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings as default_settings, Settings
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.add_on import AddOn, AddOnBasis
from ..models.property import Property, PropertyStatus
from ..models.reservation import (
    PaymentStatus, Reservation, ReservationSource, ReservationStatus, ReservationStatusHistory
)
from ..utils.db_helpers import translate_storage_errors
from ..utils.logging_config import get_logger
from .availability_ledger import AvailabilityLedger, date_range
from .clock import Clock, SystemClock
from .rate_engine import RateEngine, StayQuote, quantize_money

logger = get_logger(__name__)

MAX_SPECIAL_REQUESTS_LENGTH = 1000


@dataclass
class GuestCounts:
    adults: int = 1
    children: int = 0
    infants: int = 0

    @property
    def total(self) -> int:
        # Infants don't count against capacity
        return self.adults + self.children


@dataclass
class AvailableProperty:
    """One search hit of check_availability()"""
    rental_property: Property
    nights: int
    quote: StayQuote

    @property
    def subtotal(self) -> Decimal:
        return self.quote.subtotal

    @property
    def currency(self) -> str:
        return self.quote.currency


class BookingOrchestrator:
    """Validates, prices and books stays for one tenant."""

    def __init__(
        self,
        db: Session,
        tenant: str,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None
    ):
        self.db = db
        self.tenant = tenant
        self.clock = clock or SystemClock()
        self.settings = settings or default_settings
        self.ledger = AvailabilityLedger(db, tenant)
        self.rates = RateEngine(db, tenant)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def validate_dates(self, check_in: date, check_out: date) -> List[date]:
        """Check date order and booking window; return the nights of the stay."""
        if check_out <= check_in:
            raise ValidationError("Check-out must be after check-in", field="check_out")

        today = self.clock.today()
        if check_in < today:
            raise ValidationError("Check-in date cannot be in the past", field="check_in")

        if check_in > today + timedelta(days=self.settings.max_advance_days):
            raise ValidationError(
                f"Check-in cannot be more than {self.settings.max_advance_days} days ahead",
                field="check_in"
            )

        return date_range(check_in, check_out)

    def _get_bookable_property(self, property_id: str) -> Property:
        rental_property = self.db.query(Property).filter(
            Property.id == property_id,
            Property.tenant == self.tenant,
            Property.is_active == True,  # noqa: E712
            Property.status == PropertyStatus.AVAILABLE.value,
        ).first()
        if not rental_property:
            raise NotFoundError("Property", property_id)
        return rental_property

    @staticmethod
    def validate_stay(rental_property: Property, nights: int, guests: GuestCounts) -> None:
        if nights < (rental_property.min_stay or 1):
            raise ValidationError(f"Minimum stay is {rental_property.min_stay} night(s)", field="check_out")
        if rental_property.max_stay and nights > rental_property.max_stay:
            raise ValidationError(f"Maximum stay is {rental_property.max_stay} night(s)", field="check_out")
        if guests.adults < 1:
            raise ValidationError("At least one adult is required", field="guests")
        if guests.children < 0 or guests.infants < 0:
            raise ValidationError("Guest counts cannot be negative", field="guests")
        if guests.total > rental_property.max_guests:
            raise ValidationError(f"Maximum {rental_property.max_guests} guests allowed", field="guests")

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def check_availability(
        self,
        check_in: date,
        check_out: date,
        guests: Optional[int] = None,
        property_id: Optional[str] = None
    ) -> List[AvailableProperty]:
        """
        Properties free for every night of [check_in, check_out), priced.

        Properties failing capacity or stay-length policy are skipped,
        not reported as errors.
        """
        dates = self.validate_dates(check_in, check_out)
        nights = len(dates)

        query = self.db.query(Property).filter(
            Property.tenant == self.tenant,
            Property.is_active == True,  # noqa: E712
            Property.status == PropertyStatus.AVAILABLE.value,
        )
        if property_id:
            query = query.filter(Property.id == property_id)
        if guests:
            query = query.filter(Property.max_guests >= guests)

        available = []
        with translate_storage_errors(self.db):
            for rental_property in query.order_by(Property.sort_order, Property.name).all():
                if self.ledger.query_range(rental_property.id, check_in, check_out):
                    continue
                if nights < (rental_property.min_stay or 1):
                    continue
                if rental_property.max_stay and nights > rental_property.max_stay:
                    continue
                available.append(AvailableProperty(
                    rental_property=rental_property,
                    nights=nights,
                    quote=self.rates.price_stay(rental_property, dates),
                ))
        return available

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def _resolve_add_ons(
        self,
        add_on_ids: Sequence[str],
        nights: int,
        guests: GuestCounts,
        currency: str
    ) -> Tuple[List[dict], Decimal]:
        """Price the requested add-ons; unknown or inactive ids are an error."""
        unique_ids = list(dict.fromkeys(add_on_ids or []))
        if not unique_ids:
            return [], Decimal("0")

        add_ons = self.db.query(AddOn).filter(
            AddOn.tenant == self.tenant,
            AddOn.id.in_(unique_ids),
            AddOn.is_active == True,  # noqa: E712
        ).all()
        found = {a.id: a for a in add_ons}
        missing = [i for i in unique_ids if i not in found]
        if missing:
            raise NotFoundError("Add-on", ", ".join(missing))

        lines = []
        total = Decimal("0")
        for add_on_id in unique_ids:
            add_on = found[add_on_id]
            if add_on.currency and add_on.currency != currency:
                raise ValidationError(
                    f"Add-on '{add_on.name}' is priced in {add_on.currency}, stay is in {currency}",
                    field="add_on_ids"
                )
            if add_on.per == AddOnBasis.NIGHT.value:
                quantity = nights
            elif add_on.per == AddOnBasis.GUEST.value:
                quantity = guests.adults
            else:
                quantity = 1

            unit_price = quantize_money(Decimal(str(add_on.price)))
            line_total = quantize_money(unit_price * quantity)
            total += line_total
            lines.append({
                "add_on_id": add_on.id,
                "name": add_on.name,
                "per": add_on.per,
                "quantity": quantity,
                "unit_price": str(unit_price),
                "total": str(line_total),
            })
        return lines, quantize_money(total)

    def build_snapshots(self, quote: StayQuote, add_on_lines: List[dict], add_ons_total: Decimal) -> Tuple[dict, dict]:
        subtotal = quote.subtotal
        total = quantize_money(subtotal + add_ons_total)
        deposit = quantize_money(total * Decimal(self.settings.deposit_percent) / 100)

        pricing = {
            "nightly_breakdown": quote.breakdown(),
            "subtotal": str(subtotal),
            "taxes": "0.00",
            "fees": "0.00",
            "add_ons": add_on_lines,
            "add_ons_total": str(add_ons_total),
            "discount": "0.00",
            "total": str(total),
            "currency": quote.currency,
        }
        payment = {
            "deposit_amount": str(deposit),
            "deposit_paid": False,
            "balance_due": str(total),
            "payment_status": PaymentStatus.UNPAID.value,
        }
        return pricing, payment

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def create_reservation(
        self,
        property_id: str,
        check_in: date,
        check_out: date,
        guest_id: str,
        guests: Optional[GuestCounts] = None,
        add_on_ids: Optional[Sequence[str]] = None,
        special_requests: Optional[str] = None,
        source: str = ReservationSource.DIRECT.value
    ) -> Reservation:
        """
        Create a pending reservation and claim its nights.

        Raises:
            ValidationError: bad dates, stay length or guest count
            NotFoundError: unknown/unbookable property or add-on
            ConflictError: any night is already booked, blocked or in maintenance
        """
        guests = guests or GuestCounts()

        with translate_storage_errors(self.db):
            dates = self.validate_dates(check_in, check_out)
            rental_property = self._get_bookable_property(property_id)
            nights = len(dates)
            self.validate_stay(rental_property, nights, guests)
            if special_requests and len(special_requests) > MAX_SPECIAL_REQUESTS_LENGTH:
                raise ValidationError(
                    f"Special requests cannot exceed {MAX_SPECIAL_REQUESTS_LENGTH} characters",
                    field="special_requests"
                )

            # Pre-check; the claim below is what actually guarantees exclusivity
            conflicts = self.ledger.query_range(rental_property.id, check_in, check_out)
            if conflicts:
                raise ConflictError(dates=[r.date for r in conflicts])

            quote = self.rates.price_stay(rental_property, dates)
            add_on_lines, add_ons_total = self._resolve_add_ons(
                add_on_ids or [], nights, guests, rental_property.currency
            )
            pricing, payment = self.build_snapshots(quote, add_on_lines, add_ons_total)

            now = self.clock.now().replace(tzinfo=None)
            reservation = Reservation(
                id=str(uuid.uuid4()),
                tenant=self.tenant,
                property_id=rental_property.id,
                guest_id=guest_id,
                check_in=check_in,
                check_out=check_out,
                nights=nights,
                adults=guests.adults,
                children=guests.children,
                infants=guests.infants,
                status=ReservationStatus.PENDING.value,
                source=source,
                pricing=pricing,
                payment=payment,
                special_requests=special_requests,
                created_at=now,
                updated_at=now,
            )
            reservation.status_history.append(ReservationStatusHistory(
                sequence=1,
                status=ReservationStatus.PENDING.value,
                timestamp=now,
                actor_id=guest_id,
            ))
            reservation_id = reservation.id
            self.db.add(reservation)

            try:
                self.db.flush()
                self.ledger.claim(rental_property.id, dates, reservation_id)
                self.db.commit()
            except ConflictError:
                self.db.rollback()
                self._reconcile(reservation_id)
                raise
            except IntegrityError:
                self.db.rollback()
                self._reconcile(reservation_id)
                raise

        self.db.refresh(reservation)
        logger.reservation_created(
            reservation.reservation_ref, rental_property.id, nights, pricing["total"]
        )
        return reservation

    def _reconcile(self, reservation_id: str) -> None:
        """Release anything a failed reservation may have left in the ledger."""
        if self.ledger.reconcile(reservation_id):
            self.db.commit()
