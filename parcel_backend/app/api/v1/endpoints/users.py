"""
User API Endpoints.

First sign-in upsert, email search and admin role assignment.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from parcel_backend.app.core.exceptions import ResourceNotFoundError
from parcel_backend.app.core.guards import require_admin
from parcel_backend.app.core.reliability import retry_read
from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.user import (
    ActionResponse,
    UserResponse,
    UserRoleUpdate,
    UserUpsert,
    UserUpsertResponse,
)
from parcel_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

SEARCH_LIMIT = 10


def _like_pattern(fragment: str) -> str:
    escaped = fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@router.post("", response_model=UserUpsertResponse)
async def upsert_user(
    user_data: UserUpsert,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a user on first sign-in.

    Idempotent by email: an existing user is left untouched and
    `insertedId` is False.
    """
    result = await db.execute(select(User.id).where(User.email == user_data.email))
    if result.first():
        return UserUpsertResponse(message="user already exist", inserted_id=False)

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        photo_url=user_data.photo_url,
        role=UserRole.USER,
    )
    db.add(new_user)
    try:
        await db.flush()
        await log_event(
            db=db,
            action=AuditAction.USER_CREATED,
            target_type="user",
            target_id=new_user.id,
            actor_email=user_data.email,
        )
        await db.commit()
    except IntegrityError:
        # Concurrent first sign-in with the same email won the insert
        await db.rollback()
        return UserUpsertResponse(message="user already exist", inserted_id=False)

    logger.info("User %s registered (%s)", new_user.id, new_user.email)
    return UserUpsertResponse(message="user created", inserted_id=new_user.id)


@router.get("/search", response_model=List[UserResponse])
async def search_users(
    email: str = Query(..., min_length=1, description="Case-insensitive email fragment"),
    db: AsyncSession = Depends(get_db)
):
    """
    Find up to 10 users whose email contains `email` (case-insensitive).
    """
    async def read():
        result = await db.execute(
            select(User)
            .where(User.email.ilike(_like_pattern(email), escape="\\"))
            .order_by(User.email)
            .limit(SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    users = await retry_read(read, "search users", on_retry=db.rollback)

    if not users:
        raise ResourceNotFoundError("User")

    return users


@router.patch("/{user_id}/role", response_model=ActionResponse)
async def update_user_role(
    role_update: UserRoleUpdate,
    user_id: int = Path(..., description="User ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Grant or revoke admin (admin-only).
    """
    target = await db.get(User, user_id)
    if not target:
        raise ResourceNotFoundError("User", user_id)

    previous = target.role
    target.role = role_update.role

    await log_event(
        db=db,
        action=AuditAction.USER_ROLE_CHANGED,
        target_type="user",
        target_id=user_id,
        actor_email=admin.email,
        metadata={"from": previous.value, "to": role_update.role.value},
    )
    await db.commit()

    logger.info("User %s role changed %s -> %s by %s", user_id, previous.value, role_update.role.value, admin.email)
    return ActionResponse(success=True, message=f"User role updated to {role_update.role.value}")
