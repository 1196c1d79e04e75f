"""
Requirement Evaluator — what a vehicle must hold versus what it holds now.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from motopay.exceptions import NotFound
from motopay.models.compliance import ComplianceItem, VehicleComplianceRecord, ComplianceStatus
from motopay.models.vehicle import Vehicle


@dataclass
class ComplianceEvaluation:
    vehicle: Vehicle
    mandatory: list[ComplianceItem] = field(default_factory=list)
    optional: list[ComplianceItem] = field(default_factory=list)
    active: list[VehicleComplianceRecord] = field(default_factory=list)
    expired: list[VehicleComplianceRecord] = field(default_factory=list)
    missing_mandatory: list[ComplianceItem] = field(default_factory=list)
    superseded: list[VehicleComplianceRecord] = field(default_factory=list)

    @property
    def is_compliant(self) -> bool:
        return not self.missing_mandatory and not self.expired


class RequirementEvaluator:
    """Pure read over the catalog and the vehicle's ledger."""

    def evaluate(self, db: Session, vehicle_id: str, now: Optional[datetime] = None) -> ComplianceEvaluation:
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise NotFound("Vehicle not found")

        now = now or datetime.utcnow()

        catalog = (
            db.query(ComplianceItem)
            .filter(ComplianceItem.vehicle_category == vehicle.vehicle_type)
            .order_by(ComplianceItem.name.asc())
            .all()
        )
        records = (
            db.query(VehicleComplianceRecord)
            .filter(VehicleComplianceRecord.vehicle_id == vehicle_id)
            .order_by(VehicleComplianceRecord.issue_date.asc())
            .all()
        )

        result = ComplianceEvaluation(vehicle=vehicle)
        for item in catalog:
            (result.mandatory if item.is_mandatory else result.optional).append(item)

        lapsed = []
        for record in records:
            # Past-dated ACTIVE rows count as expired before the sweep flips them
            if record.status == ComplianceStatus.EXPIRED.value or record.expiry_date <= now:
                lapsed.append(record)
            elif record.status == ComplianceStatus.ACTIVE.value:
                result.active.append(record)

        # An expired record whose item has since been renewed is history, not a lapse
        renewed = {record.compliance_item_id for record in result.active}
        for record in lapsed:
            (result.superseded if record.compliance_item_id in renewed else result.expired).append(record)

        held = {record.compliance_item_id for record in records}
        result.missing_mandatory = [item for item in result.mandatory if item.id not in held]
        return result
