"""
Audit Service — append-only, hash-chained history per entity.

Entries are staged in the caller's unit of work, so a PAYMENT_SUCCESS entry
exists if and only if the renewal it describes was committed.
"""
from datetime import datetime
from typing import Optional, Dict

from sqlalchemy.orm import Session

from motopay.models.audit import AuditLog
from motopay.utils.hashing import generate_hash, link_hash


class AuditService:

    def record(
        self,
        db: Session,
        entity_type: str,
        entity_id: str,
        action: str,
        payload: Optional[Dict] = None,
        actor_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict] = None,
    ) -> AuditLog:
        """Append an entry to the entity's chain. Flushes, never commits.

        Args:
            entity_type: TRANSACTION, COMPLIANCE_ITEM or COMMISSION.
            entity_id: Reference or primary key of the entity.
            action: e.g. PAYMENT_SUCCESS, PRICE_CHANGE.
            payload: Facts the entry vouches for; only their hash is stored.
        """
        tail = self._trail(db, entity_type, entity_id).order_by(AuditLog.id.desc()).first()
        previous_hash = tail.payload_hash if tail else ""
        content_hash = generate_hash(payload or {})

        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            content_hash=content_hash,
            previous_hash=previous_hash,
            payload_hash=link_hash(content_hash, previous_hash),
            ip_address=ip_address,
            log_metadata=metadata or {},
            timestamp=datetime.utcnow(),
        )
        db.add(entry)
        db.flush()
        return entry

    def get_trail(self, db: Session, entity_type: str, entity_id: str) -> list[AuditLog]:
        return self._trail(db, entity_type, entity_id).order_by(AuditLog.id.asc()).all()

    def verify_chain(self, db: Session, entity_type: str, entity_id: str) -> dict:
        """Recompute every link; report the first entry that does not match."""
        entries = self.get_trail(db, entity_type, entity_id)

        previous_hash = ""
        for entry in entries:
            if entry.previous_hash != previous_hash or entry.payload_hash != link_hash(entry.content_hash, previous_hash):
                return {
                    "valid": False,
                    "total_entries": len(entries),
                    "broken_at": entry.id,
                    "message": f"Chain broken at entry {entry.id} ({entry.action})",
                }
            previous_hash = entry.payload_hash

        return {"valid": True, "total_entries": len(entries), "broken_at": None}

    @staticmethod
    def _trail(db: Session, entity_type: str, entity_id: str):
        return db.query(AuditLog).filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
