# Services package
from .clock import Clock, SystemClock, FixedClock
from .availability_ledger import AvailabilityLedger, date_range, inclusive_date_range
from .rate_engine import RateEngine, NightPrice, StayQuote, resolve_night_price, select_plan
from .booking_orchestrator import BookingOrchestrator, GuestCounts, AvailableProperty
from .reservation_lifecycle import (
    Actor,
    ReservationLifecycleManager,
    TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
)
from .calendar_service import CalendarService, BlockResult

__all__ = [
    "Clock", "SystemClock", "FixedClock",
    "AvailabilityLedger", "date_range", "inclusive_date_range",
    "RateEngine", "NightPrice", "StayQuote", "resolve_night_price", "select_plan",
    "BookingOrchestrator", "GuestCounts", "AvailableProperty",
    "Actor", "ReservationLifecycleManager", "TRANSITIONS", "TERMINAL_STATUSES", "can_transition",
    "CalendarService", "BlockResult",
]
