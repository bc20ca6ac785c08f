"""
Tests for reservation status transitions

Covers:
- Transition table and terminal statuses
- Who may confirm, cancel and check in/out
- Cancellation releasing only the reservation's own nights
- Re-booking released nights
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from stayledger.config import settings
from stayledger.errors import AuthorizationError, ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from stayledger.models import AvailabilityRecord
from stayledger.services.booking_orchestrator import BookingOrchestrator
from stayledger.services.reservation_lifecycle import (
    Actor, ReservationLifecycleManager, TERMINAL_STATUSES, can_transition
)

from conftest import TENANT

OPERATOR = Actor(id="op-1", role="admin", is_operator=True)
SYSTEM = Actor(id="payments", role="system")
GUEST = Actor(id="guest-1", role="guest")
OTHER_GUEST = Actor(id="guest-2", role="guest")


@pytest.fixture
def orchestrator(db, clock):
    return BookingOrchestrator(db, TENANT, clock=clock)


@pytest.fixture
def lifecycle(db, clock):
    return ReservationLifecycleManager(db, TENANT, clock=clock, operator_roles=settings.operator_role_set)


@pytest.fixture
def booked(orchestrator, make_property):
    rental_property = make_property(cancellation_policy="strict")
    return orchestrator.create_reservation(
        rental_property.id, date(2024, 6, 10), date(2024, 6, 13), guest_id=GUEST.id
    )


def ledger_owners(db, property_id):
    return [
        (r.date, r.reservation_id)
        for r in db.query(AvailabilityRecord).filter(
            AvailabilityRecord.property_id == property_id
        ).order_by(AvailabilityRecord.date).all()
    ]


class TestTransitionTable:

    @pytest.mark.parametrize("current,target", [
        ("pending", "confirmed"),
        ("pending", "cancelled"),
        ("pending", "no_show"),
        ("confirmed", "checked_in"),
        ("confirmed", "cancelled"),
        ("confirmed", "no_show"),
        ("checked_in", "checked_out"),
        ("checked_in", "cancelled"),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("pending", "checked_in"),
        ("pending", "checked_out"),
        ("confirmed", "pending"),
        ("checked_in", "no_show"),
        ("checked_out", "cancelled"),
        ("cancelled", "confirmed"),
        ("no_show", "checked_in"),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {"checked_out", "cancelled", "no_show"}

    def test_actor_from_role(self):
        assert Actor.from_role("a", "Admin", {"admin"}).is_operator
        assert not Actor.from_role("a", None, {"admin"}).is_operator
        assert Actor.from_role("a", "system", {"admin"}).is_system


class TestUpdateStatus:

    def test_full_stay(self, lifecycle, booked, clock):
        lifecycle.update_status(booked.reservation_ref, "confirmed", SYSTEM)
        clock.advance(days=21)
        lifecycle.update_status(booked.reservation_ref, "checked_in", OPERATOR)
        clock.advance(days=3)
        reservation = lifecycle.update_status(booked.reservation_ref, "checked_out", OPERATOR, note="All good")

        assert reservation.status == "checked_out"
        history = [(h.sequence, h.status, h.actor_id) for h in reservation.status_history]
        assert history == [
            (1, "pending", "guest-1"),
            (2, "confirmed", "payments"),
            (3, "checked_in", "op-1"),
            (4, "checked_out", "op-1"),
        ]
        assert reservation.status_history[-1].note == "All good"
        assert reservation.status_history[-1].timestamp > reservation.status_history[1].timestamp

    def test_check_out_keeps_ledger(self, db, lifecycle, booked):
        lifecycle.update_status(booked.reservation_ref, "confirmed", OPERATOR)
        lifecycle.update_status(booked.reservation_ref, "checked_in", OPERATOR)
        lifecycle.update_status(booked.reservation_ref, "checked_out", OPERATOR)
        assert len(ledger_owners(db, booked.property_id)) == 3

    def test_guest_cannot_confirm(self, lifecycle, booked):
        with pytest.raises(AuthorizationError):
            lifecycle.update_status(booked.reservation_ref, "confirmed", GUEST)

    def test_system_cannot_check_in(self, lifecycle, booked):
        lifecycle.update_status(booked.reservation_ref, "confirmed", SYSTEM)
        with pytest.raises(AuthorizationError):
            lifecycle.update_status(booked.reservation_ref, "checked_in", SYSTEM)

    def test_invalid_transition(self, lifecycle, booked):
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.update_status(booked.reservation_ref, "checked_in", OPERATOR)
        assert exc_info.value.current_status == "pending"
        assert exc_info.value.code == "INVALID_TRANSITION"
        assert isinstance(exc_info.value, ValidationError)

    def test_authorization_checked_before_transition(self, lifecycle, booked):
        with pytest.raises(AuthorizationError):
            lifecycle.update_status(booked.reservation_ref, "checked_out", GUEST)

    def test_terminal_status_is_final(self, lifecycle, booked):
        lifecycle.update_status(booked.reservation_ref, "no_show", OPERATOR)
        with pytest.raises(InvalidTransitionError):
            lifecycle.update_status(booked.reservation_ref, "cancelled", OPERATOR)

    def test_no_show_does_not_release(self, db, lifecycle, booked):
        lifecycle.update_status(booked.reservation_ref, "no_show", OPERATOR)
        assert len(ledger_owners(db, booked.property_id)) == 3

    def test_unknown_status(self, lifecycle, booked):
        with pytest.raises(ValidationError):
            lifecycle.update_status(booked.reservation_ref, "archived", OPERATOR)

    def test_reference_lookup_ignores_case_and_whitespace(self, lifecycle, booked):
        loose_ref = f"  {booked.reservation_ref.lower()} "
        assert lifecycle.get_by_ref(loose_ref).id == booked.id

        reservation = lifecycle.update_status(loose_ref, "confirmed", OPERATOR)
        assert reservation.status == "confirmed"

    def test_unknown_reference(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.update_status("RES-00000000", "confirmed", OPERATOR)

    def test_other_tenant_cannot_see_reservation(self, db, clock, booked):
        other = ReservationLifecycleManager(db, "other", clock=clock, operator_roles={"admin"})
        with pytest.raises(NotFoundError):
            other.update_status(booked.reservation_ref, "confirmed", OPERATOR)


class TestCancellation:

    def test_owner_cancels_and_dates_released(self, db, lifecycle, booked, clock):
        reservation = lifecycle.update_status(booked.reservation_ref, "cancelled", GUEST)

        assert reservation.status == "cancelled"
        assert reservation.cancellation["policy"] == "strict"
        assert reservation.cancellation["refund_amount"] == "0.00"
        assert reservation.cancellation["reason"] == "Guest cancelled"
        assert reservation.cancellation["cancelled_at"] == clock.now().replace(tzinfo=None).isoformat()
        assert ledger_owners(db, booked.property_id) == []

    def test_operator_cancel_with_refund_and_note(self, lifecycle, booked):
        reservation = lifecycle.update_status(
            booked.reservation_ref, "cancelled", OPERATOR, note="Flooding", refund_amount=Decimal("50")
        )
        assert reservation.cancellation["reason"] == "Flooding"
        assert reservation.cancellation["refund_amount"] == "50.00"
        assert reservation.cancellation["cancelled_by"] == "op-1"

    def test_other_guest_cannot_cancel(self, db, lifecycle, booked):
        with pytest.raises(AuthorizationError):
            lifecycle.update_status(booked.reservation_ref, "cancelled", OTHER_GUEST)
        assert len(ledger_owners(db, booked.property_id)) == 3

    def test_cancel_releases_only_own_nights(self, db, orchestrator, lifecycle, booked):
        neighbour = orchestrator.create_reservation(
            booked.property_id, date(2024, 6, 13), date(2024, 6, 15), guest_id=OTHER_GUEST.id
        )
        lifecycle.update_status(booked.reservation_ref, "cancelled", GUEST)

        assert ledger_owners(db, booked.property_id) == [
            (date(2024, 6, 13), neighbour.id),
            (date(2024, 6, 14), neighbour.id),
        ]

    def test_cancel_then_rebook_by_another_guest(self, db, orchestrator, lifecycle, booked):
        with pytest.raises(ConflictError):
            orchestrator.create_reservation(
                booked.property_id, date(2024, 6, 10), date(2024, 6, 13), guest_id=OTHER_GUEST.id
            )

        lifecycle.update_status(booked.reservation_ref, "cancelled", GUEST)
        rebooked = orchestrator.create_reservation(
            booked.property_id, date(2024, 6, 10), date(2024, 6, 13), guest_id=OTHER_GUEST.id
        )

        assert rebooked.status == "pending"
        assert {owner for _, owner in ledger_owners(db, booked.property_id)} == {rebooked.id}

    def test_checked_in_guest_can_be_cancelled(self, db, lifecycle, booked):
        lifecycle.update_status(booked.reservation_ref, "confirmed", OPERATOR)
        lifecycle.update_status(booked.reservation_ref, "checked_in", OPERATOR)
        reservation = lifecycle.update_status(booked.reservation_ref, "cancelled", OPERATOR)
        assert reservation.status == "cancelled"
        assert ledger_owners(db, booked.property_id) == []

    def test_cancel_mid_stay_keeps_nights_already_stayed(self, db, lifecycle, booked, clock):
        lifecycle.update_status(booked.reservation_ref, "confirmed", OPERATOR)
        clock.advance(days=21)
        lifecycle.update_status(booked.reservation_ref, "checked_in", OPERATOR)
        clock.advance(days=1)
        assert clock.today() == date(2024, 6, 11)

        lifecycle.update_status(booked.reservation_ref, "cancelled", OPERATOR, note="Left early")

        assert ledger_owners(db, booked.property_id) == [(date(2024, 6, 10), booked.id)]


class TestReads:

    def test_owner_and_operator_can_view(self, lifecycle, booked):
        assert lifecycle.get_for_actor(booked.reservation_ref, GUEST).id == booked.id
        assert lifecycle.get_for_actor(booked.reservation_ref, OPERATOR).id == booked.id
        with pytest.raises(AuthorizationError):
            lifecycle.get_for_actor(booked.reservation_ref, OTHER_GUEST)

    def test_list_for_guest(self, orchestrator, lifecycle, booked):
        orchestrator.create_reservation(
            booked.property_id, date(2024, 7, 1), date(2024, 7, 2), guest_id=OTHER_GUEST.id
        )
        items, total = lifecycle.list_for_guest(GUEST.id)
        assert total == 1
        assert items[0].id == booked.id

    def test_operator_list_filters(self, orchestrator, lifecycle, booked):
        second = orchestrator.create_reservation(
            booked.property_id, date(2024, 7, 1), date(2024, 7, 2), guest_id=OTHER_GUEST.id
        )
        lifecycle.update_status(second.reservation_ref, "confirmed", OPERATOR)

        items, total = lifecycle.list_reservations(status="confirmed")
        assert total == 1 and items[0].id == second.id

        items, total = lifecycle.list_reservations(check_in_from=date(2024, 6, 1), check_in_to=date(2024, 6, 30))
        assert [r.id for r in items] == [booked.id]

        items, total = lifecycle.list_reservations(page=2, page_size=1)
        assert total == 2 and len(items) == 1
