from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backoffice.database import Base

class AuditLog(Base):
    """Append-only trail of admin actions and engine anomalies."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False, index=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(Integer, nullable=True)
    actor_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
