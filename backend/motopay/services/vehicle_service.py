"""
Vehicle Service — lookup by TIN / plate / chassis, registration, fetch, payment history.
"""
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from motopay.exceptions import InvalidRequest, NotFound, Conflict
from motopay.models.transaction import Transaction
from motopay.models.vehicle import Vehicle
from motopay.utils.helpers import paginate, calculate_pagination
from motopay.utils.validators import validate_plate_number, validate_vin, validate_tin


class VehicleService:
    def lookup(
        self,
        db: Session,
        tin: Optional[str] = None,
        plate_number: Optional[str] = None,
        chassis_number: Optional[str] = None,
    ) -> Vehicle:
        """Find a vehicle by the first identifier supplied (TIN, then plate, then chassis)."""
        query = db.query(Vehicle)
        if tin:
            if not validate_tin(tin):
                raise InvalidRequest("Invalid TIN format")
            query = query.filter(Vehicle.tin == tin.strip())
        elif plate_number:
            if not validate_plate_number(plate_number):
                raise InvalidRequest("Invalid plate number format")
            query = query.filter(Vehicle.plate_number == plate_number.strip().upper())
        elif chassis_number:
            if not validate_vin(chassis_number):
                raise InvalidRequest("Invalid chassis number format")
            query = query.filter(Vehicle.chassis_number == chassis_number.strip().upper())
        else:
            raise InvalidRequest("Please provide TIN, plate number, or chassis number")

        vehicle = query.first()
        if not vehicle:
            raise NotFound("Vehicle not found")
        return vehicle

    def register(self, db: Session, **fields) -> Vehicle:
        plate = fields["plate_number"].strip().upper()
        chassis = fields["chassis_number"].strip().upper()
        if not validate_plate_number(plate):
            raise InvalidRequest("Invalid plate number format")
        if not validate_vin(chassis):
            raise InvalidRequest("Invalid chassis number format")
        if fields.get("tin") and not validate_tin(fields["tin"]):
            raise InvalidRequest("Invalid TIN format")

        existing = db.query(Vehicle).filter(
            or_(Vehicle.plate_number == plate, Vehicle.chassis_number == chassis)
        ).first()
        if existing:
            raise Conflict("Vehicle with this plate number or chassis number already exists")

        vehicle = Vehicle(**{**fields, "plate_number": plate, "chassis_number": chassis})
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    def get(self, db: Session, vehicle_id: str) -> Vehicle:
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise NotFound("Vehicle not found")
        return vehicle

    def get_history(self, db: Session, vehicle_id: str, page: int = 1, limit: int = 20) -> dict:
        """Payment history for a vehicle, newest first, with items and receipt."""
        self.get(db, vehicle_id)
        skip, take = paginate(page, limit)
        query = db.query(Transaction).filter(Transaction.vehicle_id == vehicle_id)
        total = query.count()
        transactions = (
            query.options(selectinload(Transaction.items), selectinload(Transaction.receipt))
            .order_by(Transaction.created_at.desc())
            .offset(skip).limit(take).all()
        )
        return {"transactions": transactions, "pagination": calculate_pagination(total, page, limit)}
