"""
Transaction Models — payment attempts, their item snapshot, receipts and
agent commissions.
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Numeric, ForeignKey, JSON
from sqlalchemy.orm import relationship

from motopay.database import Base


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentChannel(str, enum.Enum):
    SELF = "SELF"
    AGENT = "AGENT"


class CommissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    reference = Column(String(40), unique=True, nullable=False, index=True)

    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    agent_id = Column(String(64), nullable=True, index=True)
    email = Column(String(128), nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)        # Sum of item prices
    fee = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    # Status: PENDING → SUCCESS | FAILED; SUCCESS → REFUNDED
    status = Column(String(16), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    channel = Column(String(8), nullable=False, default=PaymentChannel.SELF.value)
    payment_gateway = Column(String(16), default="PAYSTACK")

    gateway_response = Column(JSON, default=dict)
    paid_at = Column(DateTime, nullable=True)
    refund_reason = Column(String(512))
    refunded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "TransactionItem", back_populates="transaction",
        cascade="all, delete-orphan", order_by="TransactionItem.id",
    )
    receipt = relationship("Receipt", back_populates="transaction", uselist=False)
    vehicle = relationship("Vehicle")


class TransactionItem(Base):
    """Snapshot of a catalog item at initiation; later repricing never reaches it."""
    __tablename__ = "transaction_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False, index=True)
    compliance_item_id = Column(String(36), nullable=False)
    name = Column(String(128), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    validity_period_days = Column(Integer, nullable=False)

    transaction = relationship("Transaction", back_populates="items")


class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), unique=True, nullable=False)
    receipt_number = Column(String(32), unique=True, nullable=False, index=True)
    issued_at = Column(DateTime, default=datetime.utcnow)

    transaction = relationship("Transaction", back_populates="receipt")


class AgentCommission(Base):
    __tablename__ = "agent_commissions"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    agent_id = Column(String(64), nullable=False, index=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), unique=True, nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(8), nullable=False, default=CommissionStatus.PENDING.value)  # PENDING | PAID
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    transaction = relationship("Transaction")
