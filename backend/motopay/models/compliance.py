"""
Compliance Models — catalog items, the per-vehicle ledger, and price history.
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, Numeric, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship

from motopay.database import Base


class ComplianceStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


class ComplianceItem(Base):
    """Catalog entry: price and validity for one item in one vehicle category."""
    __tablename__ = "compliance_items"
    __table_args__ = (
        UniqueConstraint("name", "vehicle_category", name="uq_compliance_item_name_category"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    name = Column(String(128), nullable=False)
    description = Column(String(512))
    vehicle_category = Column(String(16), nullable=False, index=True)

    price = Column(Numeric(12, 2), nullable=False)
    is_mandatory = Column(Boolean, default=True, nullable=False)
    validity_period_days = Column(Integer, nullable=False, default=365)
    is_locked = Column(Boolean, default=False, nullable=False)  # Repricing needs executive approval

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class VehicleComplianceRecord(Base):
    """
    Ledger record: a vehicle holding a compliance item for one validity window.
    Renewal appends a new row; rows are never deleted.
    """
    __tablename__ = "vehicle_compliance"
    __table_args__ = (
        CheckConstraint("expiry_date > issue_date", name="ck_compliance_window"),
        UniqueConstraint("transaction_id", "compliance_item_id", name="uq_compliance_per_transaction"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    compliance_item_id = Column(String(36), ForeignKey("compliance_items.id"), nullable=False, index=True)

    status = Column(String(16), nullable=False, default=ComplianceStatus.PENDING.value)
    issue_date = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=False, index=True)

    # Soft reference for audit; NULL for administratively seeded records
    transaction_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vehicle = relationship("Vehicle", back_populates="compliance")
    compliance_item = relationship("ComplianceItem")


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    compliance_item_id = Column(String(36), ForeignKey("compliance_items.id"), nullable=False, index=True)
    old_price = Column(Numeric(12, 2), nullable=False)
    new_price = Column(Numeric(12, 2), nullable=False)
    changed_by = Column(String(64), nullable=False)
    reason = Column(String(512))
    created_at = Column(DateTime, default=datetime.utcnow)
