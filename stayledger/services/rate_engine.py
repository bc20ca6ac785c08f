"""
Rate Engine Service

Computes nightly prices for properties based on:
- Property base nightly price
- Date-scoped, prioritized rate plans
- Day-of-week percentage modifiers of the winning plan

Every night is priced independently: plan selection and modifiers are
local to the date, never aggregated over the stay.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..models.property import Property
from ..models.rate_plan import RatePlan

TWO_PLACES = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def weekday_index(night: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6 (Python's weekday() is Monday=0)."""
    return (night.weekday() + 1) % 7


@dataclass
class NightPrice:
    """Represents the computed price for a single night"""
    date: date
    base_price: Decimal
    price: Decimal  # After rate plan and weekday modifier
    rate_plan_name: Optional[str] = None

    def to_snapshot(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "base_price": str(self.base_price),
            "modified_price": str(self.price),
            "rate_plan": self.rate_plan_name,
        }


@dataclass
class StayQuote:
    """Priced nights of a stay"""
    property_id: str
    nights: List[NightPrice] = field(default_factory=list)
    currency: str = "GBP"

    @property
    def subtotal(self) -> Decimal:
        return quantize_money(sum((n.price for n in self.nights), Decimal("0")))

    def breakdown(self) -> List[dict]:
        return [n.to_snapshot() for n in self.nights]


def _plan_sort_key(plan: RatePlan):
    # Highest priority first; ties go to the most recently created plan
    return (
        plan.priority or 0,
        plan.created_at or datetime.min,
        plan.id or "",
    )


def select_plan(plans: Sequence[RatePlan], night: date) -> Optional[RatePlan]:
    """Pick the winning active plan covering the night, or None."""
    candidates = [
        p for p in plans
        if p.is_active and p.start_date <= night <= p.end_date
    ]
    if not candidates:
        return None
    return max(candidates, key=_plan_sort_key)


def resolve_night_price(plans: Sequence[RatePlan], night: date, base_price: Decimal) -> NightPrice:
    """
    Price a single night.

    Pure: the result only depends on the arguments.
    """
    base_price = quantize_money(Decimal(str(base_price)))
    plan = select_plan(plans, night)
    if plan is None:
        return NightPrice(date=night, base_price=base_price, price=base_price)

    price = Decimal(str(plan.price_per_night))
    modifier = plan.get_day_modifiers().get(weekday_index(night))
    if modifier:
        price = price * (1 + modifier / 100)

    return NightPrice(
        date=night,
        base_price=base_price,
        price=quantize_money(price),
        rate_plan_name=plan.name,
    )


class RateEngine:
    """
    Resolves nightly prices from the rate plans of a tenant.

    Pricing Formula:
    1. plans = active plans whose [start_date, end_date] contains the night
    2. price = base_price if no plan
    3. plan = max(priority, created_at)
    4. price = plan.price_per_night * (1 + modifier[weekday]/100)
    5. round(price, 2)
    """

    def __init__(self, db: Session, tenant: str):
        self.db = db
        self.tenant = tenant

    def plans_for_range(self, property_id: str, start: date, end: date) -> List[RatePlan]:
        """Active plans of the property overlapping the inclusive range [start, end]"""
        return self.db.query(RatePlan).filter(
            RatePlan.tenant == self.tenant,
            RatePlan.property_id == property_id,
            RatePlan.is_active == True,  # noqa: E712
            RatePlan.start_date <= end,
            RatePlan.end_date >= start,
        ).all()

    def price_night(self, property_id: str, night: date, base_price: Decimal) -> NightPrice:
        """Compute the price of one night for a property"""
        plans = self.plans_for_range(property_id, night, night)
        return resolve_night_price(plans, night, base_price)

    def price_stay(self, rental_property: Property, dates: List[date]) -> StayQuote:
        """
        Price every night of a stay.

        Plans are loaded once for the whole range, then each night is
        resolved on its own with resolve_night_price().
        """
        quote = StayQuote(property_id=rental_property.id, currency=rental_property.currency)
        if not dates:
            return quote

        plans = self.plans_for_range(rental_property.id, dates[0], dates[-1])
        for night in dates:
            quote.nights.append(resolve_night_price(plans, night, rental_property.base_price))
        return quote
