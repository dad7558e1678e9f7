"""
Authentication dependencies for FastAPI.

This module binds requests to a verified identity (the Authorization Gate).
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    InsufficientPermissionsError,
)
from parcel_backend.app.core.identity import (
    IdentityVerificationError,
    IdentityVerifier,
    VerifiedIdentity,
    get_identity_verifier,
)
from parcel_backend.app.core.reliability import with_timeout
from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.user import User

# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    """
    FastAPI dependency binding the request to a verified identity.

    1. Missing Authorization header or empty bearer token -> 401
    2. Token rejected by the identity verifier -> 403
    3. Verifier exceeds its time budget -> 504

    On success the identity is also attached to `request.state.identity`.

    Raises:
        AuthenticationError, InvalidCredentialsError, OperationTimeoutError
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthorized access")

    try:
        identity = await with_timeout(
            verifier.verify(credentials.credentials),
            settings.identity_timeout_seconds,
            "identity verification",
        )
    except IdentityVerificationError:
        raise InvalidCredentialsError("Forbidden access")

    request.state.identity = identity
    return identity


async def get_current_user(
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the user row behind the verified identity.

    Raises:
        InsufficientPermissionsError: 403 if the identity never signed in
    """
    result = await db.execute(select(User).where(User.email == identity.email))
    user = result.scalar_one_or_none()

    if not user:
        raise InsufficientPermissionsError("User is not registered")

    return user
