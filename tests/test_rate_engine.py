"""
Tests for the Rate Engine

Covers:
- Base price when no plan covers a night
- Plan price with weekday modifiers (Sunday=0 ... Saturday=6)
- Priority and tie-breaking between overlapping plans
- Purity of single-night pricing
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from stayledger.models import RatePlan
from stayledger.services.availability_ledger import date_range
from stayledger.services.rate_engine import (
    RateEngine, quantize_money, resolve_night_price, select_plan, weekday_index
)


def plan(**overrides) -> RatePlan:
    data = dict(
        id="plan-1",
        name="Summer",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 30),
        price_per_night=Decimal("150.00"),
        day_modifiers=[],
        priority=0,
        is_active=True,
        created_at=datetime(2024, 1, 1),
    )
    data.update(overrides)
    return RatePlan(**data)


class TestHelpers:

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(date(2024, 6, 2)) == 0  # Sunday
        assert weekday_index(date(2024, 6, 3)) == 1  # Monday
        assert weekday_index(date(2024, 6, 1)) == 6  # Saturday

    def test_quantize_money_rounds_half_up(self):
        assert quantize_money(Decimal("10.005")) == Decimal("10.01")
        assert quantize_money(Decimal("10.004")) == Decimal("10.00")


class TestResolveNightPrice:

    def test_no_plan_uses_base_price(self):
        night = resolve_night_price([], date(2024, 6, 3), Decimal("100"))
        assert night.price == Decimal("100.00")
        assert night.rate_plan_name is None

    def test_saturday_modifier_applied(self):
        summer = plan(day_modifiers=[{"day": 6, "modifier": 20}])

        saturday = resolve_night_price([summer], date(2024, 6, 1), Decimal("100"))
        sunday = resolve_night_price([summer], date(2024, 6, 2), Decimal("100"))

        assert saturday.price == Decimal("180.00")
        assert sunday.price == Decimal("150.00")
        assert saturday.rate_plan_name == "Summer"

    def test_negative_modifier_discounts(self):
        summer = plan(day_modifiers=[{"day": 1, "modifier": "-10"}])
        monday = resolve_night_price([summer], date(2024, 6, 3), Decimal("100"))
        assert monday.price == Decimal("135.00")

    def test_plan_end_date_is_inclusive(self):
        summer = plan()
        assert resolve_night_price([summer], date(2024, 6, 30), Decimal("100")).price == Decimal("150.00")
        assert resolve_night_price([summer], date(2024, 7, 1), Decimal("100")).price == Decimal("100.00")

    def test_inactive_plan_ignored(self):
        summer = plan(is_active=False)
        assert resolve_night_price([summer], date(2024, 6, 3), Decimal("100")).price == Decimal("100.00")

    def test_pure_for_same_inputs(self):
        plans = [plan(day_modifiers=[{"day": 6, "modifier": 20}])]
        first = resolve_night_price(plans, date(2024, 6, 1), Decimal("100"))
        second = resolve_night_price(plans, date(2024, 6, 1), Decimal("100"))
        assert first == second
        assert plans[0].get_day_modifiers() == {6: Decimal("20")}


class TestPlanSelection:

    def test_highest_priority_wins(self):
        low = plan(id="low", name="Low", priority=1, price_per_night=Decimal("120"))
        high = plan(id="high", name="High", priority=5, price_per_night=Decimal("200"))
        assert select_plan([low, high], date(2024, 6, 3)).name == "High"
        assert select_plan([high, low], date(2024, 6, 3)).name == "High"

    def test_priority_tie_goes_to_most_recent(self):
        older = plan(id="a", name="Older", priority=3, created_at=datetime(2024, 1, 1))
        newer = plan(id="b", name="Newer", priority=3, created_at=datetime(2024, 3, 1))
        assert select_plan([older, newer], date(2024, 6, 3)).name == "Newer"
        assert select_plan([newer, older], date(2024, 6, 3)).name == "Newer"

    def test_full_tie_is_deterministic(self):
        a = plan(id="a", name="A", priority=3)
        b = plan(id="b", name="B", priority=3)
        assert select_plan([a, b], date(2024, 6, 3)).name == select_plan([b, a], date(2024, 6, 3)).name

    def test_no_covering_plan(self):
        assert select_plan([plan()], date(2024, 5, 31)) is None


class TestRateEngine:

    def test_base_price_stay(self, db, make_property):
        """Two nights with no plans: [100, 100], subtotal 200"""
        rental_property = make_property(base_price=Decimal("100.00"))
        engine = RateEngine(db, rental_property.tenant)

        quote = engine.price_stay(rental_property, date_range(date(2024, 6, 10), date(2024, 6, 12)))

        assert [n.price for n in quote.nights] == [Decimal("100.00"), Decimal("100.00")]
        assert quote.subtotal == Decimal("200.00")
        assert quote.currency == "GBP"

    def test_plan_with_weekend_modifier(self, db, make_property, make_rate_plan):
        rental_property = make_property()
        make_rate_plan(rental_property, day_modifiers=[{"day": 6, "modifier": 20}])
        engine = RateEngine(db, rental_property.tenant)

        quote = engine.price_stay(rental_property, date_range(date(2024, 6, 1), date(2024, 6, 3)))

        assert [n.price for n in quote.nights] == [Decimal("180.00"), Decimal("150.00")]
        assert quote.subtotal == Decimal("330.00")
        assert quote.breakdown()[0] == {
            "date": "2024-06-01",
            "base_price": "100.00",
            "modified_price": "180.00",
            "rate_plan": "Summer",
        }

    def test_stay_straddling_plan_boundary(self, db, make_property, make_rate_plan):
        rental_property = make_property()
        make_rate_plan(rental_property)
        engine = RateEngine(db, rental_property.tenant)

        quote = engine.price_stay(rental_property, date_range(date(2024, 5, 30), date(2024, 6, 2)))

        assert [n.price for n in quote.nights] == [
            Decimal("100.00"), Decimal("100.00"), Decimal("150.00")
        ]

    def test_plans_of_other_tenants_ignored(self, db, make_property, make_rate_plan):
        rental_property = make_property()
        other = make_property(tenant="other", name="Elsewhere")
        make_rate_plan(other)

        night = RateEngine(db, rental_property.tenant).price_night(
            rental_property.id, date(2024, 6, 3), rental_property.base_price
        )
        assert night.price == Decimal("100.00")

    def test_price_night_matches_stay_pricing(self, db, make_property, make_rate_plan):
        rental_property = make_property()
        make_rate_plan(rental_property, day_modifiers=[{"day": 6, "modifier": 20}])
        engine = RateEngine(db, rental_property.tenant)

        single = engine.price_night(rental_property.id, date(2024, 6, 1), rental_property.base_price)
        stay = engine.price_stay(rental_property, [date(2024, 6, 1)])

        assert single == stay.nights[0]

    def test_empty_stay(self, db, make_property):
        rental_property = make_property()
        quote = RateEngine(db, rental_property.tenant).price_stay(rental_property, [])
        assert quote.nights == []
        assert quote.subtotal == Decimal("0.00")
