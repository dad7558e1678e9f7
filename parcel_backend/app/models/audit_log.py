"""
Audit Log Database Model.

Append-only trail of state-changing actions (settlements, rider decisions, role changes).
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from parcel_backend.app.db.session import Base, utc_now


class AuditLog(Base):
    """
    Audit log model.

    Rows are written inside the same transaction as the action they describe,
    so a rolled-back action leaves no trail entry.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for unauthenticated/system actions)
    actor_email = Column(String(255), index=True, nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # What the action touched
    target_type = Column(String(50), nullable=False)
    target_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', target={self.target_type}:{self.target_id})>"
