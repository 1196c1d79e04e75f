"""
Payment Service — compliance renewal payments end to end.

Flow:
    initialize_payment → gateway checkout → (user pays) →
    verify_payment (client poll) and/or handle_webhook (gateway push) →
    ledger renewal + receipt + agent commission, applied exactly once.

Exactly-once is enforced in the database: the PENDING → SUCCESS transition
is a conditional UPDATE, and only the caller whose UPDATE matched a row
applies the renewal side effects, inside the same DB transaction. A caller
that loses the race re-reads the row and returns the recorded SUCCESS.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from motopay.exceptions import (
    NotFound, InvalidRequest, InvalidState, Unauthorized,
    GatewayUnavailable, PaymentVerificationFailed, ReferenceCollision,
)
from motopay.models.compliance import ComplianceItem, VehicleComplianceRecord, ComplianceStatus
from motopay.models.transaction import (
    Transaction, TransactionItem, Receipt, TransactionStatus, PaymentChannel,
)
from motopay.models.vehicle import Vehicle
from motopay.schemas.schemas import WebhookEvent
from motopay.services.audit_service import AuditService
from motopay.services.commission_service import CommissionCalculator
from motopay.services.gateway import GatewayStatus, GatewayVerification
from motopay.services.notification_service import NotificationService
from motopay.utils.hashing import verify_signature
from motopay.utils.helpers import (
    sum_money, calculate_fee, to_minor_units, generate_reference,
    generate_receipt_number, add_days, paginate, calculate_pagination,
)

logger = logging.getLogger(__name__)

PENDING = TransactionStatus.PENDING.value
SUCCESS = TransactionStatus.SUCCESS.value
FAILED = TransactionStatus.FAILED.value
REFUNDED = TransactionStatus.REFUNDED.value


@dataclass
class Actor:
    """Who is paying. Agents earn commission on the transactions they initiate."""
    user_id: Optional[str] = None
    role: str = "PUBLIC"

    @property
    def is_agent(self) -> bool:
        return self.role == "AGENT" and bool(self.user_id)


@dataclass
class PaymentInitResult:
    transaction_id: str
    reference: str
    amount: Decimal
    fee: Decimal
    total_amount: Decimal
    redirect_url: str
    session_handle: str


@dataclass
class VerificationResult:
    transaction: Transaction
    message: str
    already_verified: bool = False
    awaiting_payment: bool = False


class PaymentOrchestrator:
    def __init__(
        self,
        gateway,
        commissions: CommissionCalculator,
        audit: AuditService,
        notifier: NotificationService,
        fee_rate_percent: Decimal = Decimal("1.5"),
        callback_url: str = "",
        webhook_secret: str = "",
        reference_attempts: int = 5,
    ):
        self.gateway = gateway
        self.commissions = commissions
        self.audit = audit
        self.notifier = notifier
        self.fee_rate_percent = Decimal(fee_rate_percent)
        self.callback_url = callback_url
        self.webhook_secret = webhook_secret
        self.reference_attempts = reference_attempts

    # ─── Initiation ──────────────────────────────────────────────────

    async def initialize_payment(
        self,
        db: Session,
        vehicle_id: str,
        compliance_item_ids: list[str],
        email: str,
        actor: Optional[Actor] = None,
    ) -> PaymentInitResult:
        actor = actor or Actor()

        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise NotFound("Vehicle not found")

        items = db.query(ComplianceItem).filter(ComplianceItem.id.in_(compliance_item_ids)).all()
        if not compliance_item_ids or len(items) != len(compliance_item_ids):
            raise InvalidRequest("Some compliance items not found")
        wrong_category = [item.name for item in items if item.vehicle_category != vehicle.vehicle_type]
        if wrong_category:
            raise InvalidRequest(f"Items not applicable to a {vehicle.vehicle_type} vehicle: {', '.join(wrong_category)}")

        # Preserve request order in the snapshot
        by_id = {item.id: item for item in items}
        snapshot = [
            {
                "compliance_item_id": by_id[item_id].id,
                "name": by_id[item_id].name,
                "price": by_id[item_id].price,
                "validity_period_days": by_id[item_id].validity_period_days,
            }
            for item_id in compliance_item_ids
        ]
        plate_number = vehicle.plate_number

        amount = sum_money(entry["price"] for entry in snapshot)
        fee = calculate_fee(amount, self.fee_rate_percent)
        total_amount = amount + fee

        transaction = self._create_pending_transaction(db, vehicle_id, email, actor, amount, fee, total_amount, snapshot)
        reference = transaction.reference

        self.audit.record(
            db, "TRANSACTION", reference, "PAYMENT_INITIATED",
            payload={"amount": str(amount), "fee": str(fee), "total": str(total_amount),
                     "items": [entry["compliance_item_id"] for entry in snapshot]},
            actor_id=actor.user_id,
        )
        db.commit()
        logger.info("Initiated %s for vehicle %s: amount=%s fee=%s total=%s channel=%s",
                    reference, plate_number, amount, fee, total_amount, transaction.channel)

        try:
            checkout = await self.gateway.initialize(
                to_minor_units(total_amount),
                reference,
                self.callback_url,
                email,
                metadata={"transaction_id": transaction.id, "vehicle_id": vehicle_id, "plate_number": plate_number},
            )
        except GatewayUnavailable:
            # Left PENDING on purpose: reconciliation asks the gateway later
            logger.warning("Gateway initialization failed for %s; transaction left PENDING", reference)
            raise

        return PaymentInitResult(
            transaction_id=transaction.id,
            reference=reference,
            amount=amount,
            fee=fee,
            total_amount=total_amount,
            redirect_url=checkout.redirect_url,
            session_handle=checkout.session_handle,
        )

    def _create_pending_transaction(self, db, vehicle_id, email, actor, amount, fee, total_amount, snapshot) -> Transaction:
        for attempt in range(1, self.reference_attempts + 1):
            transaction = Transaction(
                reference=generate_reference("TXN"),
                vehicle_id=vehicle_id,
                user_id=actor.user_id,
                agent_id=actor.user_id if actor.is_agent else None,
                email=email,
                amount=amount,
                fee=fee,
                total_amount=total_amount,
                status=PENDING,
                channel=PaymentChannel.AGENT.value if actor.is_agent else PaymentChannel.SELF.value,
                items=[TransactionItem(**entry) for entry in snapshot],
            )
            db.add(transaction)
            try:
                db.flush()
                return transaction
            except IntegrityError:
                db.rollback()
                logger.warning("Reference collision on %s (attempt %d)", transaction.reference, attempt)
        raise ReferenceCollision("Could not allocate a unique transaction reference")

    # ─── Verification ────────────────────────────────────────────────

    async def verify_payment(self, db: Session, reference: str) -> VerificationResult:
        """Idempotent: safe to call from client polling and the webhook at once."""
        transaction = self._get_by_reference(db, reference)

        if transaction.status == SUCCESS:
            return VerificationResult(transaction, "Transaction already verified", already_verified=True)
        if transaction.status != PENDING:
            raise InvalidState(f"Transaction is {transaction.status} and cannot be verified")

        # GatewayUnavailable propagates; the transaction stays PENDING
        verification = await self.gateway.verify(reference)

        if verification.status == GatewayStatus.PENDING:
            return VerificationResult(transaction, "Payment not completed yet", awaiting_payment=True)

        expected_minor = to_minor_units(transaction.total_amount)
        if verification.status == GatewayStatus.SUCCESS and verification.paid_amount_minor == expected_minor:
            return self._apply_success(db, transaction, verification)

        return self._apply_failure(db, transaction, verification, expected_minor)

    def _apply_success(self, db: Session, transaction: Transaction, verification: GatewayVerification) -> VerificationResult:
        now = datetime.utcnow()
        claimed = db.execute(
            update(Transaction)
            .where(Transaction.id == transaction.id, Transaction.status == PENDING)
            .values(
                status=SUCCESS,
                paid_at=_naive(verification.paid_at) or now,
                gateway_response=_gateway_snapshot(verification),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        ).rowcount == 1

        if not claimed:
            db.rollback()
            db.refresh(transaction)
            if transaction.status == SUCCESS:
                logger.info("Concurrent verification already settled %s", transaction.reference)
                return VerificationResult(transaction, "Transaction already verified", already_verified=True)
            raise InvalidState(f"Transaction is {transaction.status} and cannot be verified")

        try:
            receipt_number = self._apply_renewal(db, transaction, now)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Renewal side effects failed for %s; rolled back to PENDING", transaction.reference)
            raise

        db.refresh(transaction)
        logger.info("Payment %s verified; receipt %s", transaction.reference, receipt_number)
        self._notify_receipt(transaction, receipt_number)
        return VerificationResult(transaction, "Payment verified successfully")

    def _apply_renewal(self, db: Session, transaction: Transaction, now: datetime) -> str:
        """Ledger records, vehicle timestamp, receipt, commission, audit. Caller commits."""
        for item in transaction.items:
            # Supersede the current holding instead of mutating its window
            db.query(VehicleComplianceRecord).filter(
                VehicleComplianceRecord.vehicle_id == transaction.vehicle_id,
                VehicleComplianceRecord.compliance_item_id == item.compliance_item_id,
                VehicleComplianceRecord.status == ComplianceStatus.ACTIVE.value,
            ).update(
                {VehicleComplianceRecord.status: ComplianceStatus.EXPIRED.value,
                 VehicleComplianceRecord.updated_at: now},
                synchronize_session=False,
            )
            db.add(VehicleComplianceRecord(
                vehicle_id=transaction.vehicle_id,
                compliance_item_id=item.compliance_item_id,
                status=ComplianceStatus.ACTIVE.value,
                issue_date=now,
                expiry_date=add_days(now, item.validity_period_days),
                transaction_id=transaction.id,
            ))

        db.query(Vehicle).filter(Vehicle.id == transaction.vehicle_id).update(
            {Vehicle.last_renewal_date: now}, synchronize_session=False,
        )

        receipt_number = generate_receipt_number(now)
        db.add(Receipt(transaction_id=transaction.id, receipt_number=receipt_number, issued_at=now))

        if transaction.agent_id:
            self.commissions.compute_commission(db, transaction, transaction.agent_id)

        self.audit.record(
            db, "TRANSACTION", transaction.reference, "PAYMENT_SUCCESS",
            payload={"total": str(transaction.total_amount), "receipt": receipt_number},
            metadata={"items": [item.name for item in transaction.items]},
        )
        db.flush()
        return receipt_number

    def _apply_failure(self, db: Session, transaction: Transaction, verification: GatewayVerification,
                       expected_minor: int) -> VerificationResult:
        if verification.status == GatewayStatus.SUCCESS:
            reason = f"Amount mismatch: paid {verification.paid_amount_minor}, expected {expected_minor}"
        else:
            reason = f"Gateway reported failure: {verification.gateway_response or 'declined'}"

        marked = db.execute(
            update(Transaction)
            .where(Transaction.id == transaction.id, Transaction.status == PENDING)
            .values(status=FAILED, gateway_response=_gateway_snapshot(verification), updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount == 1
        if marked:
            self.audit.record(db, "TRANSACTION", transaction.reference, "PAYMENT_FAILED", payload={"reason": reason})
        db.commit()
        db.refresh(transaction)

        if transaction.status == SUCCESS:
            return VerificationResult(transaction, "Transaction already verified", already_verified=True)

        logger.warning("Payment %s failed verification: %s", transaction.reference, reason)
        raise PaymentVerificationFailed(f"Payment verification failed. {reason}")

    def _notify_receipt(self, transaction: Transaction, receipt_number: str) -> None:
        # Fire-and-forget: the payment is already committed
        try:
            vehicle = transaction.vehicle
            self.notifier.send_payment_receipt(transaction.email, vehicle.owner_phone, {
                "receipt_number": receipt_number,
                "reference": transaction.reference,
                "total_amount": str(transaction.total_amount),
                "plate_number": vehicle.plate_number,
                "items": [item.name for item in transaction.items],
            })
        except Exception:
            logger.exception("Receipt notification failed for %s", transaction.reference)

    # ─── Webhook ─────────────────────────────────────────────────────

    async def handle_webhook(self, db: Session, raw_body: bytes, signature: Optional[str]) -> dict:
        if not verify_signature(raw_body, signature, self.webhook_secret):
            raise Unauthorized("Invalid webhook signature")

        try:
            payload = WebhookEvent.model_validate_json(raw_body)
        except ValidationError:
            raise InvalidRequest("Malformed webhook payload")

        event = payload.event
        if event != "charge.success":
            logger.info("Ignoring webhook event %s", event)
            return {"message": "Event ignored", "event": event}

        reference = payload.data.reference
        if not reference:
            raise InvalidRequest("Webhook payload has no reference")

        # Terminal outcomes are acknowledged so the gateway stops redelivering;
        # GatewayUnavailable propagates and the delivery is retried.
        try:
            result = await self.verify_payment(db, reference)
            status = result.transaction.status
        except (PaymentVerificationFailed, InvalidState) as e:
            logger.warning("Webhook for %s settled without renewal: %s", reference, e.message)
            status = self._get_by_reference(db, reference).status

        return {
            "message": "Webhook processed",
            "event": event,
            "reference": reference,
            "status": status,
        }

    # ─── Refunds & reads ─────────────────────────────────────────────

    def process_refund(self, db: Session, transaction_id: str, reason: str, actor_id: Optional[str] = None) -> Transaction:
        """Mark a SUCCESS transaction REFUNDED. Compliance already granted is kept."""
        transaction = self.get_transaction(db, transaction_id)
        if transaction.status != SUCCESS:
            raise InvalidState("Only successful transactions can be refunded")

        now = datetime.utcnow()
        refunded = db.execute(
            update(Transaction)
            .where(Transaction.id == transaction.id, Transaction.status == SUCCESS)
            .values(status=REFUNDED, refund_reason=reason, refunded_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        ).rowcount == 1
        if not refunded:
            db.rollback()
            raise InvalidState("Only successful transactions can be refunded")

        self.audit.record(
            db, "TRANSACTION", transaction.reference, "PAYMENT_REFUNDED",
            payload={"reason": reason}, actor_id=actor_id,
        )
        db.commit()
        db.refresh(transaction)
        logger.info("Refunded %s: %s", transaction.reference, reason)
        return transaction

    def get_transaction(self, db: Session, transaction_id: str) -> Transaction:
        transaction = (
            db.query(Transaction)
            .options(selectinload(Transaction.items), selectinload(Transaction.receipt))
            .filter(Transaction.id == transaction_id)
            .first()
        )
        if not transaction:
            raise NotFound("Transaction not found")
        return transaction

    def _get_by_reference(self, db: Session, reference: str) -> Transaction:
        transaction = db.query(Transaction).filter(Transaction.reference == reference).first()
        if not transaction:
            raise NotFound("Transaction not found")
        return transaction

    def list_transactions(
        self,
        db: Session,
        status: Optional[str] = None,
        channel: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """Admin ledger view. Date bounds are inclusive on ``created_at``."""
        query = db.query(Transaction)
        if status:
            try:
                query = query.filter(Transaction.status == TransactionStatus(status.upper()).value)
            except ValueError:
                raise InvalidRequest(f"Unknown transaction status: {status}")
        if channel:
            try:
                query = query.filter(Transaction.channel == PaymentChannel(channel.upper()).value)
            except ValueError:
                raise InvalidRequest(f"Unknown payment channel: {channel}")
        start_date, end_date = _naive(start_date), _naive(end_date)
        if start_date and end_date and start_date > end_date:
            raise InvalidRequest("start_date must not be after end_date")
        if start_date:
            query = query.filter(Transaction.created_at >= start_date)
        if end_date:
            query = query.filter(Transaction.created_at <= end_date)

        skip, take = paginate(page, limit)
        total = query.count()
        transactions = (
            query.options(selectinload(Transaction.items), selectinload(Transaction.receipt))
            .order_by(Transaction.created_at.desc())
            .offset(skip).limit(take).all()
        )
        return {"transactions": transactions, "pagination": calculate_pagination(total, page, limit)}

    # ─── Reconciliation ──────────────────────────────────────────────

    async def reconcile_pending(self, db: Session, older_than_minutes: int = 30) -> dict:
        """Ask the gateway about PENDING transactions nobody has verified."""
        cutoff = datetime.utcnow() - timedelta(minutes=older_than_minutes)
        references = [
            ref for (ref,) in db.query(Transaction.reference)
            .filter(Transaction.status == PENDING, Transaction.created_at <= cutoff)
            .all()
        ]

        outcome = {"checked": len(references), "succeeded": 0, "failed": 0, "still_pending": 0, "already_settled": 0}
        for reference in references:
            try:
                result = await self.verify_payment(db, reference)
            except PaymentVerificationFailed:
                outcome["failed"] += 1
            except InvalidState:
                # Settled by a webhook or refund after the list was read
                outcome["already_settled"] += 1
            except GatewayUnavailable:
                outcome["still_pending"] += 1
            else:
                if result.transaction.status == SUCCESS:
                    outcome["succeeded"] += 1
                else:
                    outcome["still_pending"] += 1
        logger.info("Reconciled pending transactions: %s", outcome)
        return outcome


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    """Gateway timestamps are tz-aware UTC; columns store naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None) - value.utcoffset()


def _gateway_snapshot(verification: GatewayVerification) -> dict:
    return {
        "status": verification.status.value,
        "paid_amount_minor": verification.paid_amount_minor,
        "paid_at": verification.paid_at.isoformat() if verification.paid_at else None,
        "gateway_response": verification.gateway_response,
    }
