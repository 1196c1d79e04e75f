"""
Service Wiring — one set of service objects per process, injected into routes.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from motopay.config import Settings
from motopay.services import (
    AuditService, CommissionCalculator, AgentService, ComplianceService,
    PaystackGateway, NotificationService, PaymentOrchestrator, Actor,
    RenewalService, RequirementEvaluator, VehicleService,
)


@dataclass
class Services:
    gateway: object
    audit: AuditService
    notifier: NotificationService
    compliance: ComplianceService
    evaluator: RequirementEvaluator
    vehicles: VehicleService
    renewals: RenewalService
    agents: AgentService
    payments: PaymentOrchestrator


def build_services(settings: Settings, gateway=None, notifier: Optional[NotificationService] = None) -> Services:
    """Construct every service once. Tests pass a fake gateway/notifier."""
    gateway = gateway or PaystackGateway(
        settings.PAYSTACK_SECRET_KEY,
        base_url=settings.PAYSTACK_BASE_URL,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )
    notifier = notifier or NotificationService()
    audit = AuditService()

    return Services(
        gateway=gateway,
        audit=audit,
        notifier=notifier,
        compliance=ComplianceService(audit),
        evaluator=RequirementEvaluator(),
        vehicles=VehicleService(),
        renewals=RenewalService(notifier, settings.EXPIRY_WARNING_DAYS, settings.REMINDER_DAYS),
        agents=AgentService(audit),
        payments=PaymentOrchestrator(
            gateway,
            CommissionCalculator(settings.COMMISSION_RATE_PERCENT),
            audit,
            notifier,
            fee_rate_percent=settings.FEE_RATE_PERCENT,
            callback_url=f"{settings.FRONTEND_URL.rstrip('/')}/payment/callback",
            webhook_secret=settings.webhook_secret,
            reference_attempts=settings.REFERENCE_MAX_ATTEMPTS,
        ),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency: the process-wide service set on app.state."""
    return request.app.state.services


def get_actor(
    user_id: Optional[str] = Header(None, alias="x-user-id"),
    role: Optional[str] = Header(None, alias="x-user-role"),
) -> Actor:
    """Identity forwarded by the auth layer in front of this service.

    Both headers are trusted as-is: ``x-user-role: AGENT`` selects the AGENT
    channel and earns commission. They must only ever be set by a trusted
    auth gateway that strips client-supplied copies; never expose this app
    directly to callers.
    """
    return Actor(user_id=user_id, role=(role or "PUBLIC").upper())
