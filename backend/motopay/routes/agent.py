"""
Agent Routes — Assisted Renewal Module.

Registered agents pay for renewals on behalf of vehicle owners and earn a
commission on each successful transaction. These routes expose an agent's
commission ledger, transactions and earnings summary.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from motopay.database import get_db
from motopay.dependencies import Services, get_services, get_actor
from motopay.schemas.schemas import CommissionPage, TransactionPage, AgentSummaryResponse, CommissionResponse, ERROR_RESPONSES
from motopay.services import Actor

router = APIRouter(prefix="/api/v1/agents", tags=["Agent"], responses=ERROR_RESPONSES)


@router.get("/{agent_id}/commissions", response_model=CommissionPage)
def get_agent_commissions(
    agent_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.agents.get_commissions(db, agent_id, page, limit)


@router.get("/{agent_id}/transactions", response_model=TransactionPage)
def get_agent_transactions(
    agent_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.agents.get_transactions(db, agent_id, page, limit)


@router.get("/{agent_id}/summary", response_model=AgentSummaryResponse)
def get_agent_summary(agent_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    """Earnings overview: pending vs. paid commission and successful transactions."""
    return services.agents.get_summary(db, agent_id)


@router.post("/commissions/{commission_id}/pay", response_model=CommissionResponse)
def pay_commission(
    commission_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor: Actor = Depends(get_actor),
):
    return services.agents.mark_paid(db, commission_id, actor.user_id)
