"""
Compliance Service — catalog reads, locked-price enforcement, and seeding.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from motopay.exceptions import NotFound, Forbidden
from motopay.models.compliance import ComplianceItem, PriceHistory
from motopay.services.audit_service import AuditService
from motopay.utils.helpers import to_money

logger = logging.getLogger(__name__)


DEFAULT_CATALOG = [
    {"name": "Annual Road Worthiness", "description": "Annual vehicle road worthiness certificate",
     "vehicle_category": "PRIVATE", "price": "12500", "validity_period_days": 365},
    {"name": "Statutory Insurance (Third Party)", "description": "Third party motor insurance",
     "vehicle_category": "PRIVATE", "price": "5000", "validity_period_days": 365},
    {"name": "Vehicle Registration Fee", "description": "Vehicle registration (10 years)",
     "vehicle_category": "PRIVATE", "price": "25000", "validity_period_days": 3650, "is_locked": True},
    {"name": "Vehicle License", "description": "Annual vehicle license renewal",
     "vehicle_category": "PRIVATE", "price": "12500", "validity_period_days": 365},
    {"name": "Proof of Ownership", "description": "Proof of vehicle ownership certificate",
     "vehicle_category": "PRIVATE", "price": "5000", "validity_period_days": 365},
    {"name": "Hackney Permit", "description": "Commercial passenger vehicle permit",
     "vehicle_category": "COMMERCIAL", "price": "8000", "validity_period_days": 365},
    {"name": "Heavy Duty Access Fee", "description": "Heavy goods vehicle road access",
     "vehicle_category": "TRUCK", "price": "45000", "validity_period_days": 365},
    {"name": "Motorcycle License", "description": "Annual motorcycle license",
     "vehicle_category": "MOTORCYCLE", "price": "3500", "validity_period_days": 365},
    {"name": "Tricycle Permit", "description": "Annual tricycle operating permit",
     "vehicle_category": "TRICYCLE", "price": "5500", "validity_period_days": 365},
]


class ComplianceService:
    """Read-mostly access to the compliance catalog."""

    def __init__(self, audit: AuditService):
        self.audit = audit

    def list_items(self, db: Session, vehicle_category: Optional[str] = None) -> list[ComplianceItem]:
        query = db.query(ComplianceItem)
        if vehicle_category:
            query = query.filter(ComplianceItem.vehicle_category == vehicle_category)
        return query.order_by(ComplianceItem.name.asc()).all()

    def get_item(self, db: Session, item_id: str) -> ComplianceItem:
        item = db.query(ComplianceItem).filter(ComplianceItem.id == item_id).first()
        if not item:
            raise NotFound("Compliance item not found")
        return item

    def update_price(
        self,
        db: Session,
        item_id: str,
        new_price: Decimal,
        changed_by: str,
        reason: str,
    ) -> ComplianceItem:
        """Reprice a catalog item and record the change.

        In-flight transactions are unaffected: they carry their own item
        snapshot taken at initiation.

        Raises:
            NotFound: unknown item.
            Forbidden: the item is locked and needs executive approval.
        """
        item = self.get_item(db, item_id)

        if item.is_locked:
            raise Forbidden("This compliance item price is locked and requires executive approval")

        old_price = to_money(item.price)
        new_price = to_money(new_price)

        db.add(PriceHistory(
            compliance_item_id=item.id,
            old_price=old_price,
            new_price=new_price,
            changed_by=changed_by,
            reason=reason,
        ))
        item.price = new_price
        self.audit.record(
            db, "COMPLIANCE_ITEM", item.id, "PRICE_CHANGE",
            payload={"old_price": str(old_price), "new_price": str(new_price), "reason": reason},
            actor_id=changed_by,
        )
        db.commit()
        db.refresh(item)

        logger.info("Repriced %s (%s): %s -> %s by %s", item.name, item.vehicle_category, old_price, new_price, changed_by)
        return item

    def get_price_history(self, db: Session, item_id: str) -> list[PriceHistory]:
        self.get_item(db, item_id)
        return (
            db.query(PriceHistory)
            .filter(PriceHistory.compliance_item_id == item_id)
            .order_by(PriceHistory.id.desc())
            .all()
        )

    def seed_catalog(self, db: Session, catalog: Optional[list[dict]] = None) -> int:
        """Insert default catalog entries that are not present yet. Returns the number created."""
        created = 0
        for entry in catalog or DEFAULT_CATALOG:
            exists = db.query(ComplianceItem).filter(
                ComplianceItem.name == entry["name"],
                ComplianceItem.vehicle_category == entry["vehicle_category"],
            ).first()
            if exists:
                continue
            db.add(ComplianceItem(
                name=entry["name"],
                description=entry.get("description"),
                vehicle_category=entry["vehicle_category"],
                price=to_money(entry["price"]),
                is_mandatory=entry.get("is_mandatory", True),
                validity_period_days=entry["validity_period_days"],
                is_locked=entry.get("is_locked", False),
            ))
            created += 1
        db.commit()
        logger.info("Seeded %d compliance catalog items", created)
        return created
