"""
Renewal Service — periodic ledger maintenance and renewal advice.

The expiry sweep is the only writer besides the payment orchestrator that
touches ACTIVE/EXPIRED status. It is meant to be run on a schedule
(cron / admin endpoint), not on the request path.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from motopay.exceptions import NotFound
from motopay.models.compliance import ComplianceItem, VehicleComplianceRecord, ComplianceStatus
from motopay.models.vehicle import Vehicle
from motopay.services.notification_service import NotificationService
from motopay.utils.helpers import add_days, days_until, to_money

logger = logging.getLogger(__name__)


class RenewalService:
    def __init__(self, notifier: NotificationService, warning_days: int = 30, reminder_days: Optional[list[int]] = None):
        self.notifier = notifier
        self.warning_days = warning_days
        self.reminder_days = set(reminder_days or [30, 14, 7, 1])

    def expire_due_records(self, db: Session, now: Optional[datetime] = None) -> int:
        """Flip every ACTIVE record past its expiry date to EXPIRED."""
        now = now or datetime.utcnow()
        count = (
            db.query(VehicleComplianceRecord)
            .filter(
                VehicleComplianceRecord.status == ComplianceStatus.ACTIVE.value,
                VehicleComplianceRecord.expiry_date < now,
            )
            .update(
                {VehicleComplianceRecord.status: ComplianceStatus.EXPIRED.value,
                 VehicleComplianceRecord.updated_at: now},
                synchronize_session=False,
            )
        )
        db.commit()
        logger.info("Expired %d compliance records", count)
        return count

    def check_upcoming_expirations(self, db: Session, now: Optional[datetime] = None) -> dict:
        """Send reminders for ACTIVE records expiring on one of the reminder days."""
        now = now or datetime.utcnow()
        expiring = (
            db.query(VehicleComplianceRecord)
            .options(joinedload(VehicleComplianceRecord.vehicle), joinedload(VehicleComplianceRecord.compliance_item))
            .filter(
                VehicleComplianceRecord.status == ComplianceStatus.ACTIVE.value,
                VehicleComplianceRecord.expiry_date >= now,
                VehicleComplianceRecord.expiry_date <= add_days(now, self.warning_days),
            )
            .all()
        )
        logger.info("Found %d compliance items expiring soon", len(expiring))

        reminded = 0
        for record in expiring:
            days_remaining = days_until(record.expiry_date, now)
            if days_remaining not in self.reminder_days:
                continue
            vehicle = record.vehicle
            try:
                self.notifier.send_renewal_reminder(vehicle.owner_contact, vehicle.owner_phone, {
                    "plate_number": vehicle.plate_number,
                    "compliance_item": record.compliance_item.name,
                    "expiry_date": record.expiry_date.date().isoformat(),
                    "days_remaining": days_remaining,
                })
                reminded += 1
            except Exception:
                # One bad contact must not stop the sweep
                logger.exception("Failed to send reminder for %s", vehicle.plate_number)

        return {"processed": len(expiring), "reminded": reminded}

    def get_recommendations(self, db: Session, vehicle_id: str, now: Optional[datetime] = None) -> list[dict]:
        """Mandatory items the owner should pay for now, or soon."""
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise NotFound("Vehicle not found")
        now = now or datetime.utcnow()

        mandatory = (
            db.query(ComplianceItem)
            .filter(ComplianceItem.vehicle_category == vehicle.vehicle_type, ComplianceItem.is_mandatory.is_(True))
            .order_by(ComplianceItem.name.asc())
            .all()
        )

        recommendations = []
        for item in mandatory:
            latest = (
                db.query(VehicleComplianceRecord)
                .filter(
                    VehicleComplianceRecord.vehicle_id == vehicle_id,
                    VehicleComplianceRecord.compliance_item_id == item.id,
                )
                .order_by(VehicleComplianceRecord.expiry_date.desc())
                .first()
            )
            base = {"compliance_item_id": item.id, "compliance_item": item.name, "price": to_money(item.price)}

            if latest is None:
                recommendations.append({**base, "status": "REQUIRED", "reason": "Not registered"})
            elif latest.status == ComplianceStatus.EXPIRED.value or latest.expiry_date <= now:
                recommendations.append({**base, "status": "REQUIRED", "reason": "Expired"})
            else:
                remaining = days_until(latest.expiry_date, now)
                if remaining <= self.warning_days:
                    recommendations.append({**base, "status": "EXPIRING_SOON", "days_remaining": remaining})

        return recommendations
