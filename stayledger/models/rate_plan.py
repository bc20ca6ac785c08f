"""
Rate Plan Model

A date-scoped nightly price override for a property.

Pricing Formula (per night):
1. plans = active plans of the property whose [start_date, end_date] contains the night
2. none -> property base price
3. plan = highest priority (ties: most recently created)
4. price = plan.price_per_night * (1 + day_modifier/100) for the night's weekday
5. round to 2 decimal places

Weekday numbering for modifiers: 0=Sunday, 1=Monday ... 6=Saturday
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, JSON, Numeric, String
from sqlalchemy.orm import relationship

from ..database import Base


class RatePlan(Base):
    __tablename__ = "rate_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant = Column(String(64), nullable=False)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)

    # Inclusive date range
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    price_per_night = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="GBP")

    # [{"day": 6, "modifier": 20}, ...]
    day_modifiers = Column(JSON, default=list)

    min_stay = Column(Integer, default=1)
    priority = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    rental_property = relationship("Property", back_populates="rate_plans")

    __table_args__ = (
        Index("ix_rate_plan_property_range", "tenant", "property_id", "start_date", "end_date"),
        Index("ix_rate_plan_active_priority", "tenant", "is_active", "priority"),
    )

    def get_day_modifiers(self) -> Dict[int, Decimal]:
        """Weekday (0=Sun) -> percentage modifier"""
        return {
            int(m["day"]): Decimal(str(m["modifier"]))
            for m in (self.day_modifiers or [])
        }

    def __repr__(self):
        return f"<RatePlan {self.name} {self.start_date}..{self.end_date} p={self.priority}>"
