from motopay.services.audit_service import AuditService
from motopay.services.commission_service import CommissionCalculator, AgentService
from motopay.services.compliance_service import ComplianceService
from motopay.services.gateway import PaystackGateway
from motopay.services.notification_service import NotificationService
from motopay.services.payment_service import PaymentOrchestrator, Actor
from motopay.services.renewal_service import RenewalService
from motopay.services.requirement_evaluator import RequirementEvaluator
from motopay.services.vehicle_service import VehicleService

__all__ = [
    "AuditService", "CommissionCalculator", "AgentService", "ComplianceService",
    "PaystackGateway", "NotificationService", "PaymentOrchestrator", "Actor",
    "RenewalService", "RequirementEvaluator", "VehicleService",
]
