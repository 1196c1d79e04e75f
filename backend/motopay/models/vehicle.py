"""
Vehicle Model — Registered vehicles and their category.
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import relationship

from motopay.database import Base


class VehicleCategory(str, enum.Enum):
    PRIVATE = "PRIVATE"
    COMMERCIAL = "COMMERCIAL"
    TRUCK = "TRUCK"
    MOTORCYCLE = "MOTORCYCLE"
    TRICYCLE = "TRICYCLE"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    plate_number = Column(String(16), unique=True, nullable=False, index=True)
    chassis_number = Column(String(17), unique=True, nullable=False, index=True)
    tin = Column(String(10), index=True)

    vehicle_type = Column(String(16), nullable=False)  # VehicleCategory value
    make = Column(String(64))
    model = Column(String(64))
    year = Column(Integer)

    owner_name = Column(String(128))
    owner_contact = Column(String(128))  # email
    owner_phone = Column(String(20))

    last_renewal_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    compliance = relationship("VehicleComplianceRecord", back_populates="vehicle")
