"""
Pydantic Schemas — Request & Response models for API validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, List
from pydantic import BaseModel, EmailStr, Field

from motopay.models.vehicle import VehicleCategory


# ──────────────── Compliance Catalog ────────────────

class ComplianceItemResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    vehicle_category: str
    price: Decimal
    is_mandatory: bool
    validity_period_days: int
    is_locked: bool

    class Config:
        from_attributes = True


class PriceUpdateRequest(BaseModel):
    new_price: Decimal = Field(..., gt=0, decimal_places=2, description="New price in NGN")
    reason: str = Field(..., min_length=3, max_length=512)


class PriceHistoryEntry(BaseModel):
    id: int
    compliance_item_id: str
    old_price: Decimal
    new_price: Decimal
    changed_by: str
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ──────────────── Vehicles & Ledger ────────────────

class VehicleRegisterRequest(BaseModel):
    plate_number: str = Field(..., description="e.g. PL-582-KN")
    chassis_number: str = Field(..., min_length=17, max_length=17, description="17-character VIN")
    tin: Optional[str] = Field(None, description="10-digit Tax Identification Number")
    vehicle_type: VehicleCategory
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    owner_name: Optional[str] = None
    owner_contact: Optional[EmailStr] = None
    owner_phone: Optional[str] = None


class VehicleResponse(BaseModel):
    id: str
    plate_number: str
    chassis_number: str
    tin: Optional[str] = None
    vehicle_type: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    owner_name: Optional[str] = None
    last_renewal_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class ComplianceRecordResponse(BaseModel):
    id: str
    compliance_item_id: str
    compliance_item_name: Optional[str] = None
    status: str
    issue_date: datetime
    expiry_date: datetime
    transaction_id: Optional[str] = None


class ComplianceEvaluationResponse(BaseModel):
    vehicle: VehicleResponse
    mandatory: List[ComplianceItemResponse]
    optional: List[ComplianceItemResponse]
    active: List[ComplianceRecordResponse]
    expired: List[ComplianceRecordResponse]
    superseded: List[ComplianceRecordResponse] = []
    missing_mandatory: List[ComplianceItemResponse]
    is_compliant: bool


class RenewalRecommendation(BaseModel):
    compliance_item_id: str
    compliance_item: str
    price: Decimal
    status: str                       # REQUIRED | EXPIRING_SOON
    reason: Optional[str] = None
    days_remaining: Optional[int] = None


# ──────────────── Payment ────────────────

class PaymentInitRequest(BaseModel):
    vehicle_id: str
    compliance_items: List[str] = Field(..., min_length=1, description="Compliance item IDs to pay for")
    email: EmailStr


class PaymentInitResponse(BaseModel):
    success: bool = True
    transaction_id: str
    reference: str
    amount: Decimal
    fee: Decimal
    total_amount: Decimal
    authorization_url: str
    access_code: str
    message: str = "Payment initialized successfully"


class TransactionItemResponse(BaseModel):
    compliance_item_id: str
    name: str
    price: Decimal
    validity_period_days: int

    class Config:
        from_attributes = True


class ReceiptResponse(BaseModel):
    receipt_number: str
    issued_at: datetime

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    id: str
    reference: str
    vehicle_id: str
    user_id: Optional[str] = None
    agent_id: Optional[str] = None
    amount: Decimal
    fee: Decimal
    total_amount: Decimal
    status: str
    channel: str
    paid_at: Optional[datetime] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    created_at: datetime
    items: List[TransactionItemResponse] = []
    receipt: Optional[ReceiptResponse] = None

    class Config:
        from_attributes = True


class PaymentVerifyResponse(BaseModel):
    success: bool
    message: str
    awaiting_payment: bool = False    # PENDING at the gateway; poll again
    data: TransactionResponse


class RefundRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=512)


class WebhookData(BaseModel):
    reference: Optional[str] = None


class WebhookEvent(BaseModel):
    """Paystack event envelope; other fields in ``data`` are ignored."""
    event: str
    data: WebhookData = WebhookData()


class WebhookResponse(BaseModel):
    message: str
    event: Optional[str] = None
    reference: Optional[str] = None
    status: Optional[str] = None


# ──────────────── Agents ────────────────

class CommissionResponse(BaseModel):
    id: int
    agent_id: str
    transaction_id: str
    percentage: Decimal
    amount: Decimal
    status: str
    paid_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CommissionPage(BaseModel):
    commissions: List[CommissionResponse]
    pagination: Pagination


class TransactionPage(BaseModel):
    transactions: List[TransactionResponse]
    pagination: Pagination


class AmountCount(BaseModel):
    amount: Decimal
    count: int


class AgentSummaryResponse(BaseModel):
    agent_id: str
    total_earnings: Decimal
    pending_commissions: AmountCount
    paid_commissions: AmountCount
    total_transactions: int
    total_commission_records: int


# ──────────────── Admin / Audit ────────────────

class AuditLogEntry(BaseModel):
    id: int
    entity_type: str
    entity_id: str
    action: str
    actor_id: Optional[str] = None
    payload_hash: Optional[str] = None
    timestamp: datetime
    log_metadata: Optional[Dict] = None

    class Config:
        from_attributes = True


class AdminDashboardResponse(BaseModel):
    transactions_by_status: Dict[str, int]
    revenue: Decimal
    fees_collected: Decimal
    pending_commissions: Decimal
    total_vehicles: int
    active_compliance_records: int
    expired_compliance_records: int


# ──────────────── Generic ────────────────

class ErrorResponse(BaseModel):
    success: bool = False
    detail: str
    error_code: Optional[str] = None


# OpenAPI docs for the MotoPayError envelope rendered by main.py
ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 503)
}
