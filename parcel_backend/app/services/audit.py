"""
Audit logging service for tracking state-changing actions.

Entries are added to the caller's session and flushed, never committed here:
they become durable together with the action they describe.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from parcel_backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_CREATED = "USER_CREATED"
    USER_ROLE_CHANGED = "USER_ROLE_CHANGED"

    PARCEL_CREATED = "PARCEL_CREATED"
    PARCEL_DELETED = "PARCEL_DELETED"

    PAYMENT_RECORDED = "PAYMENT_RECORDED"

    RIDER_APPLIED = "RIDER_APPLIED"
    RIDER_STATUS_CHANGED = "RIDER_STATUS_CHANGED"


async def log_event(
    db: AsyncSession,
    action: str,
    target_type: str,
    target_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Append an audit entry to the current transaction.

    Args:
        db: Database session (transaction owned by the caller)
        action: Action being performed (use AuditAction constants)
        target_type: Kind of entity touched ("parcel", "rider", ...)
        target_id: ID of the entity touched
        actor_email: Verified email of the caller, if any
        metadata: Additional context as JSON

    Returns:
        Flushed AuditLog instance
    """
    audit_log = AuditLog(
        actor_email=actor_email,
        action=action,
        target_type=target_type,
        target_id=target_id,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    limit: int = 100
) -> List[AuditLog]:
    """
    Query audit entries, newest first.

    Args:
        db: Database session
        target_type: Filter by entity kind
        target_id: Filter by entity id
        limit: Maximum number of entries to return
    """
    query = select(AuditLog)

    if target_type:
        query = query.where(AuditLog.target_type == target_type)
    if target_id is not None:
        query = query.where(AuditLog.target_id == target_id)

    query = query.order_by(desc(AuditLog.created_at), desc(AuditLog.id)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
