"""
Tests for operator calendar management (block / unblock / listing)
"""

import pytest
from datetime import date

from stayledger.errors import NotFoundError, ValidationError
from stayledger.models import AvailabilityRecord
from stayledger.services.booking_orchestrator import BookingOrchestrator
from stayledger.services.calendar_service import CalendarService, MAX_RANGE_DAYS

from conftest import TENANT


@pytest.fixture
def calendar(db):
    return CalendarService(db, TENANT)


@pytest.fixture
def booked(db, clock, make_property):
    rental_property = make_property(name="Loft")
    return BookingOrchestrator(db, TENANT, clock=clock).create_reservation(
        rental_property.id, date(2024, 6, 10), date(2024, 6, 12), guest_id="guest-1"
    )


def statuses(db, property_id):
    return {
        r.date: r.status
        for r in db.query(AvailabilityRecord).filter(AvailabilityRecord.property_id == property_id).all()
    }


class TestBlockRange:

    def test_block_over_booked_dates_rejects_only_those(self, db, calendar, booked):
        result = calendar.block_range(booked.property_id, date(2024, 6, 9), date(2024, 6, 13), reason="Deep clean")

        assert result.blocked == 3
        assert result.rejected == 2
        assert result.rejected_dates == [date(2024, 6, 10), date(2024, 6, 11)]

        current = statuses(db, booked.property_id)
        assert current[date(2024, 6, 9)] == "blocked"
        assert current[date(2024, 6, 10)] == "booked"
        assert current[date(2024, 6, 11)] == "booked"
        assert current[date(2024, 6, 12)] == "blocked"
        assert current[date(2024, 6, 13)] == "blocked"

    def test_range_is_inclusive(self, db, calendar, make_property):
        rental_property = make_property()
        result = calendar.block_range(rental_property.id, date(2024, 6, 1), date(2024, 6, 1))
        assert result.blocked == 1
        assert list(statuses(db, rental_property.id)) == [date(2024, 6, 1)]

    def test_maintenance_hold(self, db, calendar, make_property):
        rental_property = make_property()
        calendar.block_range(rental_property.id, date(2024, 6, 1), date(2024, 6, 2), status="maintenance")
        assert set(statuses(db, rental_property.id).values()) == {"maintenance"}

    def test_end_before_start(self, calendar, make_property):
        rental_property = make_property()
        with pytest.raises(ValidationError):
            calendar.block_range(rental_property.id, date(2024, 6, 2), date(2024, 6, 1))

    def test_range_too_long(self, calendar, make_property):
        rental_property = make_property()
        with pytest.raises(ValidationError):
            calendar.block_range(rental_property.id, date(2024, 1, 1), date(2025, 1, 1))
        assert MAX_RANGE_DAYS == 366

    def test_unknown_property(self, calendar):
        with pytest.raises(NotFoundError):
            calendar.block_range("missing", date(2024, 6, 1), date(2024, 6, 2))


class TestUnblockRange:

    def test_unblock_is_idempotent(self, db, calendar, booked):
        calendar.block_range(booked.property_id, date(2024, 6, 9), date(2024, 6, 13))

        assert calendar.unblock_range(booked.property_id, date(2024, 6, 9), date(2024, 6, 13)) == 3
        assert calendar.unblock_range(booked.property_id, date(2024, 6, 9), date(2024, 6, 13)) == 0

        assert statuses(db, booked.property_id) == {
            date(2024, 6, 10): "booked",
            date(2024, 6, 11): "booked",
        }

    def test_unblock_leaves_maintenance(self, db, calendar, make_property):
        rental_property = make_property()
        calendar.block_range(rental_property.id, date(2024, 6, 1), date(2024, 6, 1), status="maintenance")
        assert calendar.unblock_range(rental_property.id, date(2024, 6, 1), date(2024, 6, 1)) == 0
        assert calendar.unblock_range(
            rental_property.id, date(2024, 6, 1), date(2024, 6, 1), status="maintenance"
        ) == 1


class TestGetCalendar:

    def test_entries_join_property_and_reservation(self, calendar, booked):
        calendar.block_range(booked.property_id, date(2024, 6, 12), date(2024, 6, 12), reason="Owner visit")

        entries = calendar.get_calendar(date(2024, 6, 1), date(2024, 6, 30))

        assert [(e["date"], e["status"]) for e in entries] == [
            (date(2024, 6, 10), "booked"),
            (date(2024, 6, 11), "booked"),
            (date(2024, 6, 12), "blocked"),
        ]
        assert entries[0]["property"]["name"] == "Loft"
        assert entries[0]["reservation"]["reservation_ref"] == booked.reservation_ref
        assert entries[0]["reservation"]["guests"] == 1
        assert entries[2]["reservation"] is None
        assert entries[2]["note"] == "Owner visit"

    def test_end_date_inclusive_and_property_filter(self, calendar, booked, make_property):
        other = make_property(name="Barn")
        calendar.block_range(other.id, date(2024, 6, 10), date(2024, 6, 10))

        entries = calendar.get_calendar(date(2024, 6, 9), date(2024, 6, 10), property_id=booked.property_id)

        assert [e["date"] for e in entries] == [date(2024, 6, 10)]
        assert entries[0]["property"]["id"] == booked.property_id

    def test_read_only(self, db, calendar, booked):
        before = statuses(db, booked.property_id)
        calendar.get_calendar(date(2024, 6, 1), date(2024, 6, 30))
        assert statuses(db, booked.property_id) == before
