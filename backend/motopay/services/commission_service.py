"""
Commission Service — agent cut of successful assisted renewals, and the
agent-facing commission/transaction views.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from motopay.exceptions import NotFound, InvalidState
from motopay.models.transaction import (
    AgentCommission, CommissionStatus, Transaction, TransactionStatus,
)
from motopay.services.audit_service import AuditService
from motopay.utils.helpers import percentage_of, to_money, paginate, calculate_pagination

logger = logging.getLogger(__name__)


class CommissionCalculator:
    """Computes and stages an AgentCommission row. Never commits."""

    def __init__(self, rate_percent: Decimal = Decimal("2.5")):
        self.rate_percent = Decimal(rate_percent)

    def compute_commission(self, db: Session, transaction: Transaction, agent_id: str) -> AgentCommission:
        # Base amount only; the processing fee is not commissionable
        amount = percentage_of(transaction.amount, self.rate_percent)
        commission = AgentCommission(
            agent_id=agent_id,
            transaction_id=transaction.id,
            percentage=self.rate_percent,
            amount=amount,
            status=CommissionStatus.PENDING.value,
        )
        db.add(commission)
        db.flush()
        logger.info("Commission %s staged for agent %s on %s", amount, agent_id, transaction.reference)
        return commission


class AgentService:
    def __init__(self, audit: AuditService):
        self.audit = audit

    def get_commissions(self, db: Session, agent_id: str, page: int = 1, limit: int = 20) -> dict:
        skip, take = paginate(page, limit)
        query = db.query(AgentCommission).filter(AgentCommission.agent_id == agent_id)
        total = query.count()
        commissions = query.order_by(AgentCommission.id.desc()).offset(skip).limit(take).all()
        return {"commissions": commissions, "pagination": calculate_pagination(total, page, limit)}

    def get_transactions(self, db: Session, agent_id: str, page: int = 1, limit: int = 20) -> dict:
        skip, take = paginate(page, limit)
        query = db.query(Transaction).filter(Transaction.agent_id == agent_id)
        total = query.count()
        transactions = query.order_by(Transaction.created_at.desc()).offset(skip).limit(take).all()
        return {"transactions": transactions, "pagination": calculate_pagination(total, page, limit)}

    def get_summary(self, db: Session, agent_id: str) -> dict:
        def _aggregate(*filters):
            total, count = db.query(
                func.coalesce(func.sum(AgentCommission.amount), 0), func.count(AgentCommission.id)
            ).filter(AgentCommission.agent_id == agent_id, *filters).one()
            return to_money(total), count

        total_earnings, total_records = _aggregate()
        pending_amount, pending_count = _aggregate(AgentCommission.status == CommissionStatus.PENDING.value)
        paid_amount, paid_count = _aggregate(AgentCommission.status == CommissionStatus.PAID.value)
        successful = db.query(func.count(Transaction.id)).filter(
            Transaction.agent_id == agent_id,
            Transaction.status == TransactionStatus.SUCCESS.value,
        ).scalar() or 0

        return {
            "agent_id": agent_id,
            "total_earnings": total_earnings,
            "pending_commissions": {"amount": pending_amount, "count": pending_count},
            "paid_commissions": {"amount": paid_amount, "count": paid_count},
            "total_transactions": successful,
            "total_commission_records": total_records,
        }

    def mark_paid(self, db: Session, commission_id: int, actor_id: str | None = None) -> AgentCommission:
        commission = db.query(AgentCommission).filter(AgentCommission.id == commission_id).first()
        if not commission:
            raise NotFound("Commission not found")
        if commission.status != CommissionStatus.PENDING.value:
            raise InvalidState("Only pending commissions can be paid out")

        commission.status = CommissionStatus.PAID.value
        commission.paid_at = datetime.utcnow()
        self.audit.record(
            db, "COMMISSION", str(commission.id), "COMMISSION_PAID",
            payload={"agent_id": commission.agent_id, "amount": str(commission.amount)},
            actor_id=actor_id,
        )
        db.commit()
        db.refresh(commission)
        return commission
