"""
Audit Log Model — append-only trail, hash-chained per entity.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON

from motopay.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    entity_type = Column(String(32), nullable=False, index=True)   # TRANSACTION | COMPLIANCE_ITEM | COMMISSION
    entity_id = Column(String(64), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    actor_id = Column(String(64))

    content_hash = Column(String(64), nullable=False)   # SHA-256 of this entry's payload
    previous_hash = Column(String(64), default="")      # payload_hash of the prior entry for the entity
    payload_hash = Column(String(64), nullable=False)   # SHA-256(previous_hash + content_hash)

    ip_address = Column(String(45))
    log_metadata = Column(JSON, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow)
