"""
Database seeding script for the first admin.

Rider approvals and role changes require an admin, and admins can only be
appointed by another admin, so the first one is created here.

Usage:
    python -m parcel_backend.seed_admin --email admin@example.com
"""

import argparse
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.db.session import AsyncSessionLocal, engine, Base
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.app.services.audit import log_event, AuditAction


async def seed_admin(db: AsyncSession, email: str, name: str = "Administrator") -> User:
    """
    Create an admin user, or promote the existing user with that email.

    Returns:
        The admin User
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(email=email, name=name, role=UserRole.ADMIN)
        db.add(user)
        await db.flush()
        action = AuditAction.USER_CREATED
    elif user.role == UserRole.ADMIN:
        return user
    else:
        user.role = UserRole.ADMIN
        action = AuditAction.USER_ROLE_CHANGED

    await log_event(
        db=db,
        action=action,
        target_type="user",
        target_id=user.id,
        metadata={"seeded_admin": True},
    )
    await db.commit()
    return user


async def main(email: str, name: str):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        user = await seed_admin(db, email, name)
        print(f"Admin ready: {user.email} (id={user.id})")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or promote the first admin user")
    parser.add_argument("--email", required=True, help="Email the identity provider issues tokens for")
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()
    asyncio.run(main(args.email, args.name))
