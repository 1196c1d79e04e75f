"""
Compliance Routes — catalog browsing and admin repricing.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from motopay.database import get_db
from motopay.dependencies import Services, get_services, get_actor
from motopay.models.vehicle import VehicleCategory
from motopay.schemas.schemas import ComplianceItemResponse, PriceUpdateRequest, PriceHistoryEntry, ERROR_RESPONSES
from motopay.services import Actor

router = APIRouter(prefix="/api/v1/compliance", tags=["Compliance"], responses=ERROR_RESPONSES)


@router.get("/items", response_model=list[ComplianceItemResponse])
def list_compliance_items(
    vehicle_category: Optional[VehicleCategory] = None,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.compliance.list_items(db, vehicle_category.value if vehicle_category else None)


@router.get("/items/{item_id}", response_model=ComplianceItemResponse)
def get_compliance_item(item_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.compliance.get_item(db, item_id)


@router.put("/items/{item_id}/price", response_model=ComplianceItemResponse)
def update_compliance_price(
    item_id: str,
    payload: PriceUpdateRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor: Actor = Depends(get_actor),
):
    """Reprice a catalog item. Locked items are rejected with 403."""
    return services.compliance.update_price(db, item_id, payload.new_price, actor.user_id or "system", payload.reason)


@router.get("/items/{item_id}/history", response_model=list[PriceHistoryEntry])
def get_price_history(item_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.compliance.get_price_history(db, item_id)
