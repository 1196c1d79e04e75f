"""
Notification Service — Receipt and renewal-reminder delivery (email/SMS simulation).
Delivery internals are out of scope; this only formats and hands off.
"""
import logging
import time
from typing import Dict, Any

logger = logging.getLogger(__name__)


class NotificationService:
    def send_email(self, to: str, subject: str, body: str) -> Dict[str, Any]:
        """Simulates sending an email via a provider like SendGrid."""
        logger.info("[EMAIL] Sending to %s: %s", to, subject)
        return {
            "success": True,
            "provider": "MockEmailGateway",
            "sid": f"EM{int(time.time())}X",
            "status": "queued",
        }

    def send_sms(self, phone: str, message: str) -> Dict[str, Any]:
        """Simulates sending an SMS via a provider like Termii or Twilio."""
        logger.info("[SMS] Sending to %s: %s", phone, message)
        return {
            "success": True,
            "provider": "MockSMSGateway",
            "sid": f"SM{int(time.time())}Y",
            "status": "sent",
        }

    def send_payment_receipt(self, email: str, phone: str | None, receipt: dict) -> None:
        self.send_email(
            email,
            f"Payment receipt {receipt['receipt_number']}",
            f"We received NGN {receipt['total_amount']} for vehicle {receipt['plate_number']} "
            f"(ref {receipt['reference']}). Items: {', '.join(receipt['items'])}.",
        )
        if phone:
            self.send_sms(
                phone,
                f"MotoPay: payment of NGN {receipt['total_amount']} for {receipt['plate_number']} "
                f"confirmed. Receipt {receipt['receipt_number']}.",
            )

    def send_renewal_reminder(self, email: str | None, phone: str | None, reminder: dict) -> None:
        if email:
            self.send_email(
                email,
                f"{reminder['compliance_item']} expires in {reminder['days_remaining']} day(s)",
                f"Your {reminder['compliance_item']} for vehicle {reminder['plate_number']} "
                f"expires on {reminder['expiry_date']}. Renew online to stay compliant.",
            )
        if phone:
            self.send_sms(
                phone,
                f"MotoPay: {reminder['plate_number']} {reminder['compliance_item']} "
                f"expires in {reminder['days_remaining']} day(s).",
            )
