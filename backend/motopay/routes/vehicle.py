"""
Vehicle Routes — lookup, registration, compliance status and renewal advice.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from motopay.database import get_db
from motopay.dependencies import Services, get_services
from motopay.models.compliance import VehicleComplianceRecord
from motopay.schemas.schemas import (
    VehicleRegisterRequest, VehicleResponse, ComplianceEvaluationResponse,
    ComplianceItemResponse, ComplianceRecordResponse, RenewalRecommendation,
    TransactionPage, ERROR_RESPONSES,
)

router = APIRouter(prefix="/api/v1/vehicles", tags=["Vehicle"], responses=ERROR_RESPONSES)


def _record(record: VehicleComplianceRecord) -> ComplianceRecordResponse:
    return ComplianceRecordResponse(
        id=record.id,
        compliance_item_id=record.compliance_item_id,
        compliance_item_name=record.compliance_item.name if record.compliance_item else None,
        status=record.status,
        issue_date=record.issue_date,
        expiry_date=record.expiry_date,
        transaction_id=record.transaction_id,
    )


@router.get("/lookup", response_model=VehicleResponse)
def lookup_vehicle(
    tin: Optional[str] = None,
    plate_number: Optional[str] = None,
    chassis_number: Optional[str] = None,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Find a vehicle by TIN, plate number or chassis number."""
    return services.vehicles.lookup(db, tin=tin, plate_number=plate_number, chassis_number=chassis_number)


@router.post("", response_model=VehicleResponse, status_code=201)
def register_vehicle(
    payload: VehicleRegisterRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.vehicles.register(db, **payload.model_dump(mode="json"))


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.vehicles.get(db, vehicle_id)


@router.get("/{vehicle_id}/compliance", response_model=ComplianceEvaluationResponse)
def get_vehicle_compliance(vehicle_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    """Required vs. held compliance items for a vehicle."""
    evaluation = services.evaluator.evaluate(db, vehicle_id)

    def items(rows):
        return [ComplianceItemResponse.model_validate(row) for row in rows]

    return ComplianceEvaluationResponse(
        vehicle=VehicleResponse.model_validate(evaluation.vehicle),
        mandatory=items(evaluation.mandatory),
        optional=items(evaluation.optional),
        active=[_record(r) for r in evaluation.active],
        expired=[_record(r) for r in evaluation.expired],
        superseded=[_record(r) for r in evaluation.superseded],
        missing_mandatory=items(evaluation.missing_mandatory),
        is_compliant=evaluation.is_compliant,
    )


@router.get("/{vehicle_id}/recommendations", response_model=list[RenewalRecommendation])
def get_renewal_recommendations(vehicle_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.renewals.get_recommendations(db, vehicle_id)


@router.get("/{vehicle_id}/history", response_model=TransactionPage)
def get_vehicle_history(
    vehicle_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Payments made for a vehicle, newest first."""
    return services.vehicles.get_history(db, vehicle_id, page, limit)
