from motopay.models.vehicle import Vehicle, VehicleCategory
from motopay.models.compliance import ComplianceItem, VehicleComplianceRecord, PriceHistory, ComplianceStatus
from motopay.models.transaction import (
    Transaction, TransactionItem, Receipt, AgentCommission,
    TransactionStatus, PaymentChannel, CommissionStatus,
)
from motopay.models.audit import AuditLog

__all__ = [
    "Vehicle", "VehicleCategory",
    "ComplianceItem", "VehicleComplianceRecord", "PriceHistory", "ComplianceStatus",
    "Transaction", "TransactionItem", "Receipt", "AgentCommission",
    "TransactionStatus", "PaymentChannel", "CommissionStatus",
    "AuditLog",
]
