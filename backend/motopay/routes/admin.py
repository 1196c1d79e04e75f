"""
Admin Routes — revenue dashboard, audit trail access, ledger maintenance.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import func

from motopay.database import get_db
from motopay.dependencies import Services, get_services
from motopay.models.compliance import VehicleComplianceRecord, ComplianceStatus
from motopay.models.transaction import Transaction, TransactionStatus, AgentCommission, CommissionStatus
from motopay.models.vehicle import Vehicle
from motopay.schemas.schemas import AuditLogEntry, AdminDashboardResponse, TransactionPage, ERROR_RESPONSES
from motopay.utils.helpers import to_money

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"], responses=ERROR_RESPONSES)


@router.get("/dashboard", response_model=AdminDashboardResponse)
def get_dashboard(db: Session = Depends(get_db)):
    """Get aggregated revenue and compliance metrics."""

    by_status = db.query(
        Transaction.status, func.count(Transaction.id)
    ).group_by(Transaction.status).all()
    status_dist = {status.value: 0 for status in TransactionStatus}
    status_dist.update({s: c for s, c in by_status})

    revenue, fees = db.query(
        func.coalesce(func.sum(Transaction.amount), 0),
        func.coalesce(func.sum(Transaction.fee), 0),
    ).filter(Transaction.status == TransactionStatus.SUCCESS.value).one()

    pending_commissions = db.query(
        func.coalesce(func.sum(AgentCommission.amount), 0)
    ).filter(AgentCommission.status == CommissionStatus.PENDING.value).scalar()

    def _records(status: ComplianceStatus) -> int:
        return db.query(func.count(VehicleComplianceRecord.id)).filter(
            VehicleComplianceRecord.status == status.value
        ).scalar() or 0

    return AdminDashboardResponse(
        transactions_by_status=status_dist,
        revenue=to_money(revenue),
        fees_collected=to_money(fees),
        pending_commissions=to_money(pending_commissions),
        total_vehicles=db.query(func.count(Vehicle.id)).scalar() or 0,
        active_compliance_records=_records(ComplianceStatus.ACTIVE),
        expired_compliance_records=_records(ComplianceStatus.EXPIRED),
    )


@router.get("/transactions", response_model=TransactionPage)
def list_transactions(
    status: Optional[str] = None,
    channel: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """All transactions, filtered by status, channel and creation date range."""
    return services.payments.list_transactions(
        db, status=status, channel=channel, start_date=start_date, end_date=end_date, page=page, limit=limit,
    )


@router.get("/audit/{entity_type}/{entity_id}", response_model=list[AuditLogEntry])
def get_audit_trail(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Get the full audit trail for an entity (e.g. TRANSACTION/<reference>)."""
    logs = services.audit.get_trail(db, entity_type.upper(), entity_id)
    if not logs:
        raise HTTPException(status_code=404, detail="No audit logs found for this entity")
    return logs


@router.get("/audit/{entity_type}/{entity_id}/verify")
def verify_audit_chain(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Verify the integrity of the audit hash chain for an entity."""
    return services.audit.verify_chain(db, entity_type.upper(), entity_id)


@router.post("/maintenance/expire")
def expire_compliance(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    """Flip ACTIVE records past their expiry date to EXPIRED."""
    return {"expired_count": services.renewals.expire_due_records(db)}


@router.post("/maintenance/reminders")
def send_renewal_reminders(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.renewals.check_upcoming_expirations(db)


@router.post("/maintenance/reconcile")
async def reconcile_payments(
    older_than_minutes: int = Query(30, ge=0),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Re-verify PENDING transactions against the gateway."""
    return await services.payments.reconcile_pending(db, older_than_minutes)
