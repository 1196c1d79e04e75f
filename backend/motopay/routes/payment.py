"""
Payment Routes — compliance renewal payments.
Handles: initialization, verification, gateway webhook, refunds.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from motopay.config import get_settings
from motopay.database import get_db
from motopay.dependencies import Services, get_services, get_actor
from motopay.schemas.schemas import (
    PaymentInitRequest, PaymentInitResponse, PaymentVerifyResponse,
    TransactionResponse, RefundRequest, WebhookResponse, ERROR_RESPONSES,
)
from motopay.services import Actor
from motopay.utils.rate_limiter import rate_limit

settings = get_settings()

router = APIRouter(prefix="/api/v1/payments", tags=["Payment"], responses=ERROR_RESPONSES)


@router.post("/initialize", response_model=PaymentInitResponse)
async def initialize_payment(
    payload: PaymentInitRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor: Actor = Depends(get_actor),
    _throttle: bool = Depends(rate_limit(
        requests=settings.PAYMENT_RATE_LIMIT_REQUESTS,
        window=settings.PAYMENT_RATE_LIMIT_WINDOW,
        scope="payments",
    )),
):
    """Price the selected compliance items and open a gateway checkout."""
    result = await services.payments.initialize_payment(
        db, payload.vehicle_id, payload.compliance_items, payload.email, actor,
    )
    return PaymentInitResponse(
        transaction_id=result.transaction_id,
        reference=result.reference,
        amount=result.amount,
        fee=result.fee,
        total_amount=result.total_amount,
        authorization_url=result.redirect_url,
        access_code=result.session_handle,
    )


@router.post("/verify/{reference}", response_model=PaymentVerifyResponse)
async def verify_payment(
    reference: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Confirm a payment with the gateway. Safe to call repeatedly."""
    result = await services.payments.verify_payment(db, reference)
    return PaymentVerifyResponse(
        success=not result.awaiting_payment,
        message=result.message,
        awaiting_payment=result.awaiting_payment,
        data=TransactionResponse.model_validate(result.transaction),
    )


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    signature: Optional[str] = Header(None, alias="x-paystack-signature"),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Gateway push notification. Authenticated by HMAC over the raw body."""
    raw_body = await request.body()
    return await services.payments.handle_webhook(db, raw_body, signature)


@router.get("/transaction/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.payments.get_transaction(db, transaction_id)


@router.post("/refund/{transaction_id}", response_model=TransactionResponse)
def refund_payment(
    transaction_id: str,
    payload: RefundRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor: Actor = Depends(get_actor),
):
    """Refund a successful transaction. Granted compliance is not revoked."""
    return services.payments.process_refund(db, transaction_id, payload.reason, actor.user_id)
