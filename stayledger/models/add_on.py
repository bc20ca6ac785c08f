import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, Numeric, String

from ..database import Base


class AddOnBasis(str, enum.Enum):
    """How an add-on is billed"""
    NIGHT = "night"
    STAY = "stay"
    GUEST = "guest"


class AddOn(Base):
    __tablename__ = "add_ons"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant = Column(String(64), nullable=False)

    name = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="GBP")
    per = Column(String(10), nullable=False, default=AddOnBasis.STAY.value)
    category = Column(String(50), nullable=True)  # dining, transport, experience...

    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_add_on_tenant_active", "tenant", "is_active", "sort_order"),
        Index("ix_add_on_tenant_category", "tenant", "category"),
    )

    def __repr__(self):
        return f"<AddOn {self.name} {self.price}/{self.per}>"
