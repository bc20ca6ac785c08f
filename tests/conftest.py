"""
Shared fixtures: in-memory SQLite database, pinned clock, factories and
an API client wired to both through dependency overrides.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stayledger.database import Base, get_db
from stayledger.models import AddOn, Property, RatePlan
from stayledger.models.property import slugify
from stayledger.services.clock import FixedClock

TENANT = "test-tenant"

# Monday 20 May 2024, 09:00 UTC
NOW = datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc)
TODAY = NOW.date()

OPERATOR_HEADERS = {"X-Tenant-ID": TENANT, "X-Actor-ID": "op-1", "X-Actor-Role": "admin"}
SYSTEM_HEADERS = {"X-Tenant-ID": TENANT, "X-Actor-ID": "payments", "X-Actor-Role": "system"}


def guest_headers(guest_id: str = "guest-1") -> dict:
    return {"X-Tenant-ID": TENANT, "X-Actor-ID": guest_id, "X-Actor-Role": "guest"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file-backed database, one connection per session, for multi-threaded tests"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'stayledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def make_property(db):
    def _make(tenant: str = TENANT, **overrides) -> Property:
        data = dict(
            name="Sea View Room",
            base_price=Decimal("100.00"),
            currency="GBP",
            max_guests=4,
            min_stay=1,
            max_stay=30,
            status="available",
            is_active=True,
            cancellation_policy="moderate",
            sort_order=0,
        )
        data.update(overrides)
        rental_property = Property(tenant=tenant, slug=slugify(data["name"]), **data)
        db.add(rental_property)
        db.commit()
        db.refresh(rental_property)
        return rental_property
    return _make


@pytest.fixture
def make_rate_plan(db):
    def _make(rental_property: Property, **overrides) -> RatePlan:
        data = dict(
            name="Summer",
            start_date=date(2024, 6, 1),
            end_date=date(2024, 6, 30),
            price_per_night=Decimal("150.00"),
            currency=rental_property.currency,
            day_modifiers=[],
            priority=0,
            is_active=True,
        )
        data.update(overrides)
        plan = RatePlan(tenant=rental_property.tenant, property_id=rental_property.id, **data)
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan
    return _make


@pytest.fixture
def make_add_on(db):
    def _make(**overrides) -> AddOn:
        data = dict(
            name="Breakfast",
            price=Decimal("12.50"),
            currency="GBP",
            per="guest",
            is_active=True,
        )
        data.update(overrides)
        add_on = AddOn(tenant=TENANT, **data)
        db.add(add_on)
        db.commit()
        db.refresh(add_on)
        return add_on
    return _make


@pytest.fixture
def client(db, clock):
    from stayledger.main import app
    from stayledger.utils.dependencies import get_clock
    from stayledger.utils.rate_limiter import limiter

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    limiter.enabled = False

    # No context manager: the lifespan would create tables on the configured database
    yield TestClient(app)

    app.dependency_overrides.clear()
